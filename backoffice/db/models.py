"""
SQLAlchemy ORM models for the back office.

Only inputs are stored (loan terms, recurring events, depreciation
settings); every summary is recomputed on read.
"""

from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    Float,
    Integer,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Numeric,
)
from sqlalchemy.orm import declarative_base, relationship
import uuid

Base = declarative_base()


def generate_uuid():
    return str(uuid.uuid4())


class AuditMixin:
    """Mixin for audit fields on all models."""

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )
    is_deleted = Column(Boolean, default=False, nullable=False)


class User(AuditMixin, Base):
    """Owner of a portfolio; every read is scoped by user."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    properties = relationship(
        "Property",
        back_populates="owner",
        foreign_keys="Property.owner_id",
        lazy="dynamic",
    )


class Property(AuditMixin, Base):
    """Property model representing a real estate asset."""

    __tablename__ = "properties"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    owner_id = Column(String, ForeignKey("users.id"), nullable=True, index=True)

    # Address
    address = Column(String(255))
    city = Column(String(100))
    province = Column(String(50))
    postal_code = Column(String(20))

    acquisition_date = Column(Date)
    purchase_price = Column(Numeric(14, 2))
    current_value = Column(Numeric(14, 2))

    # Relationships
    owner = relationship("User", back_populates="properties", foreign_keys=[owner_id])
    units = relationship("PropertyUnit", back_populates="property", cascade="all, delete-orphan")
    mortgages = relationship("Mortgage", back_populates="property", cascade="all, delete-orphan")
    revenues = relationship("Revenue", back_populates="property", cascade="all, delete-orphan")
    expenses = relationship("Expense", back_populates="property", cascade="all, delete-orphan")
    invoices = relationship("Invoice", back_populates="property", cascade="all, delete-orphan")
    depreciation_info = relationship(
        "DepreciationInfo",
        back_populates="property",
        uselist=False,
        cascade="all, delete-orphan",
    )


class PropertyUnit(AuditMixin, Base):
    """Rentable unit within a property."""

    __tablename__ = "property_units"

    id = Column(String, primary_key=True, default=generate_uuid)
    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    label = Column(String(100), nullable=False)
    square_feet = Column(Float)
    rent_expected = Column(Numeric(12, 2))

    property = relationship("Property", back_populates="units")


class Mortgage(AuditMixin, Base):
    """Fixed-rate mortgage on a property."""

    __tablename__ = "mortgages"

    id = Column(String, primary_key=True, default=generate_uuid)
    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    lender = Column(String(255), nullable=False)

    principal = Column(Numeric(14, 2), nullable=False)
    rate_annual = Column(Numeric(8, 6), nullable=False)  # decimal, 0.05 = 5%
    term_months = Column(Integer, nullable=False)
    amortization_months = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    payment_frequency = Column(Integer, default=12, nullable=False)
    payment_amount = Column(Numeric(12, 2))  # computed when the mortgage is saved

    property = relationship("Property", back_populates="mortgages")


class Revenue(AuditMixin, Base):
    """Recurring revenue (rent, parking...)."""

    __tablename__ = "revenues"

    id = Column(String, primary_key=True, default=generate_uuid)
    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(String(20), default="monthly", nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)

    property = relationship("Property", back_populates="revenues")


class Expense(AuditMixin, Base):
    """Recurring expense (taxes, insurance, maintenance...)."""

    __tablename__ = "expenses"

    id = Column(String, primary_key=True, default=generate_uuid)
    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    frequency = Column(String(20), default="monthly", nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)

    property = relationship("Property", back_populates="expenses")


class Invoice(AuditMixin, Base):
    """Supplier invoice; amount plus two sales taxes."""

    __tablename__ = "invoices"

    id = Column(String, primary_key=True, default=generate_uuid)
    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    supplier = Column(String(255), nullable=False)
    invoice_date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    tax1 = Column(Numeric(12, 2))
    tax2 = Column(Numeric(12, 2))

    property = relationship("Property", back_populates="invoices")


class DepreciationInfo(AuditMixin, Base):
    """CCA class settings of a property."""

    __tablename__ = "depreciation_info"

    id = Column(String, primary_key=True, default=generate_uuid)
    property_id = Column(
        String, ForeignKey("properties.id"), nullable=False, unique=True, index=True
    )
    class_code = Column(String(20), nullable=False)
    cca_rate = Column(Numeric(6, 4), nullable=False)
    opening_ucc = Column(Numeric(14, 2), default=0)
    additions = Column(Numeric(14, 2), default=0)
    dispositions = Column(Numeric(14, 2), default=0)

    property = relationship("Property", back_populates="depreciation_info")
