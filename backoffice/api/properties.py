"""
Property and mortgage API endpoints.
"""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date
from sqlalchemy.orm import Session

from backoffice.api.calculations import LoanTermsInput
from backoffice.calculations.amortization import (
    build_amortization_schedule,
    calculate_mortgage_period,
    calculate_payment,
)
from backoffice.calculations.numbers import to_amount
from backoffice.db.database import get_db
from backoffice.db.models import Mortgage, Property
from backoffice.services.portfolio_loader import mortgage_to_terms

router = APIRouter()


class PropertyCreate(BaseModel):
    """Schema for creating a property."""

    name: str = Field(min_length=1)
    owner_id: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    postal_code: Optional[str] = None
    acquisition_date: Optional[date] = None
    purchase_price: Optional[float] = Field(default=None, ge=0)
    current_value: Optional[float] = Field(default=None, ge=0)


class PropertyResponse(BaseModel):
    """Schema for property response."""

    id: str
    name: str
    owner_id: Optional[str]
    address: Optional[str]
    city: Optional[str]
    province: Optional[str]
    postal_code: Optional[str]
    acquisition_date: Optional[date]
    purchase_price: Optional[float]
    current_value: Optional[float]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class PropertyListResponse(BaseModel):
    """Response for listing properties."""

    properties: List[PropertyResponse]
    total: int


class MortgageCreate(LoanTermsInput):
    """Schema for creating a mortgage; without a payment one is computed on save."""

    lender: str = Field(min_length=1)


class MortgageResponse(BaseModel):
    id: str
    property_id: str
    lender: str
    principal: float
    annual_rate: float
    term_months: int
    amortization_months: int
    start_date: date
    payment_frequency: int
    payment_amount: float


def property_to_response(prop: Property) -> PropertyResponse:
    """Convert Property model to response schema."""
    return PropertyResponse(
        id=prop.id,
        name=prop.name,
        owner_id=prop.owner_id,
        address=prop.address,
        city=prop.city,
        province=prop.province,
        postal_code=prop.postal_code,
        acquisition_date=prop.acquisition_date,
        purchase_price=to_amount(prop.purchase_price) if prop.purchase_price is not None else None,
        current_value=to_amount(prop.current_value) if prop.current_value is not None else None,
        created_at=prop.created_at.isoformat() if prop.created_at else None,
        updated_at=prop.updated_at.isoformat() if prop.updated_at else None,
    )


def mortgage_to_response(mortgage: Mortgage) -> MortgageResponse:
    terms = mortgage_to_terms(mortgage)
    return MortgageResponse(
        id=mortgage.id,
        property_id=mortgage.property_id,
        lender=mortgage.lender,
        principal=terms.principal,
        annual_rate=terms.annual_rate,
        term_months=terms.term_months,
        amortization_months=terms.amortization_months,
        start_date=terms.start_date,
        payment_frequency=terms.payment_frequency,
        payment_amount=terms.payment_amount or 0.0,
    )


def get_property_or_404(db: Session, property_id: str) -> Property:
    db_property = (
        db.query(Property)
        .filter(Property.id == property_id, Property.is_deleted == False)
        .first()
    )
    if not db_property:
        raise HTTPException(status_code=404, detail="Property not found")
    return db_property


def get_mortgage_or_404(db: Session, property_id: str, mortgage_id: str) -> Mortgage:
    mortgage = (
        db.query(Mortgage)
        .join(Property)
        .filter(
            Mortgage.id == mortgage_id,
            Mortgage.property_id == property_id,
            Mortgage.is_deleted == False,
            Property.is_deleted == False,
        )
        .first()
    )
    if not mortgage:
        raise HTTPException(status_code=404, detail="Mortgage not found")
    return mortgage


@router.get("/", response_model=PropertyListResponse)
async def list_properties(
    owner_id: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """List properties, optionally scoped to an owner."""
    query = db.query(Property).filter(Property.is_deleted == False)

    if owner_id:
        query = query.filter(Property.owner_id == owner_id)

    total = query.count()
    properties = query.order_by(Property.name).offset(skip).limit(limit).all()

    return PropertyListResponse(
        properties=[property_to_response(p) for p in properties],
        total=total,
    )


@router.post("/", response_model=PropertyResponse, status_code=201)
async def create_property(
    property_data: PropertyCreate,
    db: Session = Depends(get_db),
):
    """Create a new property."""
    db_property = Property(**property_data.model_dump())

    db.add(db_property)
    db.commit()
    db.refresh(db_property)

    return property_to_response(db_property)


@router.get("/{property_id}", response_model=PropertyResponse)
async def get_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Get a property by ID."""
    return property_to_response(get_property_or_404(db, property_id))


@router.delete("/{property_id}")
async def delete_property(
    property_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a property."""
    db_property = get_property_or_404(db, property_id)

    db_property.is_deleted = True
    db.commit()

    return {"deleted": True, "id": property_id}


@router.get("/{property_id}/mortgages", response_model=List[MortgageResponse])
async def list_mortgages(
    property_id: str,
    db: Session = Depends(get_db),
):
    """List the mortgages of a property."""
    db_property = get_property_or_404(db, property_id)
    return [mortgage_to_response(m) for m in db_property.mortgages if not m.is_deleted]


@router.post("/{property_id}/mortgages", response_model=MortgageResponse, status_code=201)
async def create_mortgage(
    property_id: str,
    mortgage_data: MortgageCreate,
    db: Session = Depends(get_db),
):
    """Create a mortgage; the payment sent is stored, else the computed one."""
    get_property_or_404(db, property_id)

    mortgage = Mortgage(
        property_id=property_id,
        lender=mortgage_data.lender,
        principal=mortgage_data.principal,
        rate_annual=mortgage_data.annual_rate,
        term_months=mortgage_data.term_months,
        amortization_months=mortgage_data.amortization_months,
        start_date=mortgage_data.start_date,
        payment_frequency=mortgage_data.payment_frequency,
        payment_amount=mortgage_data.payment_amount
        or calculate_payment(
            mortgage_data.principal,
            mortgage_data.annual_rate,
            mortgage_data.amortization_months,
            mortgage_data.payment_frequency,
        ),
    )
    db.add(mortgage)
    db.commit()
    db.refresh(mortgage)

    return mortgage_to_response(mortgage)


@router.post("/{property_id}/mortgages/preview")
async def preview_mortgage(
    property_id: str,
    terms: LoanTermsInput,
    db: Session = Depends(get_db),
):
    """Amortization schedule of a mortgage that is not saved yet."""
    get_property_or_404(db, property_id)
    return build_amortization_schedule(terms.to_terms()).to_dict()


@router.get("/{property_id}/mortgages/{mortgage_id}/amortization")
async def get_mortgage_amortization(
    property_id: str,
    mortgage_id: str,
    db: Session = Depends(get_db),
):
    """Full amortization schedule of a saved mortgage."""
    mortgage = get_mortgage_or_404(db, property_id, mortgage_id)
    return {
        "mortgage": mortgage_to_response(mortgage).model_dump(mode="json"),
        "analysis": build_amortization_schedule(mortgage_to_terms(mortgage)).to_dict(),
    }


@router.get("/{property_id}/mortgages/{mortgage_id}/current-period")
async def get_mortgage_current_period(
    property_id: str,
    mortgage_id: str,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Payment split and balances of the current period."""
    mortgage = get_mortgage_or_404(db, property_id, mortgage_id)
    period = calculate_mortgage_period(mortgage_to_terms(mortgage), as_of=as_of)
    return {"mortgage_id": mortgage.id, "as_of": (as_of or date.today()).isoformat(), **period.to_dict()}
