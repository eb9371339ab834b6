"""
Portfolio loading.

Reads a user's properties with everything they own in one batched query
and converts the rows into engine records. Decimal and string columns are
normalized here so the calculation modules only ever see floats, ints and
dates.
"""

from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from backoffice.calculations.models import (
    DepreciationSetting,
    Invoice,
    LoanTerms,
    PropertyRecord,
    PropertyUnit,
    RecurringCashFlowEvent,
)
from backoffice.calculations.numbers import to_amount, to_date, to_int
from backoffice.calculations.recurrence import parse_frequency
from backoffice.db import models


def mortgage_to_terms(mortgage: models.Mortgage) -> LoanTerms:
    """Convert a mortgage row into loan terms."""
    payment = to_amount(mortgage.payment_amount)
    return LoanTerms(
        principal=to_amount(mortgage.principal),
        annual_rate=to_amount(mortgage.rate_annual),
        term_months=to_int(mortgage.term_months),
        amortization_months=to_int(mortgage.amortization_months),
        start_date=to_date(mortgage.start_date),
        payment_frequency=to_int(mortgage.payment_frequency),
        payment_amount=payment if payment > 0 else None,
    )


def _event(row, category: Optional[str] = None) -> RecurringCashFlowEvent:
    return RecurringCashFlowEvent(
        id=row.id,
        label=row.label,
        amount=to_amount(row.amount),
        frequency=parse_frequency(row.frequency),
        start_date=to_date(row.start_date),
        end_date=to_date(row.end_date),
        category=category,
    )


def _depreciation(info: Optional[models.DepreciationInfo]) -> Optional[DepreciationSetting]:
    if info is None:
        return None
    return DepreciationSetting(
        class_code=info.class_code,
        cca_rate=to_amount(info.cca_rate),
        opening_ucc=to_amount(info.opening_ucc),
        additions=to_amount(info.additions),
        dispositions=to_amount(info.dispositions),
    )


def property_to_record(prop: models.Property) -> PropertyRecord:
    """Convert a property row and its relationships into a PropertyRecord."""
    return PropertyRecord(
        id=prop.id,
        name=prop.name,
        current_value=to_amount(prop.current_value),
        mortgages=[mortgage_to_terms(m) for m in prop.mortgages if not m.is_deleted],
        revenues=[_event(r) for r in prop.revenues if not r.is_deleted],
        expenses=[_event(e, e.category) for e in prop.expenses if not e.is_deleted],
        invoices=[
            Invoice(
                amount=to_amount(i.amount),
                tax1=to_amount(i.tax1),
                tax2=to_amount(i.tax2),
            )
            for i in prop.invoices
            if not i.is_deleted
        ],
        units=[
            PropertyUnit(
                label=u.label,
                square_feet=to_amount(u.square_feet) if u.square_feet is not None else None,
                rent_expected=to_amount(u.rent_expected) if u.rent_expected is not None else None,
            )
            for u in prop.units
            if not u.is_deleted
        ],
        depreciation=_depreciation(prop.depreciation_info),
    )


def load_portfolio(db: Session, owner_id: str) -> List[PropertyRecord]:
    """Load every property of a user, ordered by name."""
    properties = (
        db.query(models.Property)
        .options(
            selectinload(models.Property.units),
            selectinload(models.Property.mortgages),
            selectinload(models.Property.revenues),
            selectinload(models.Property.expenses),
            selectinload(models.Property.invoices),
            selectinload(models.Property.depreciation_info),
        )
        .filter(models.Property.owner_id == owner_id, models.Property.is_deleted == False)
        .order_by(models.Property.name)
        .all()
    )
    return [property_to_record(p) for p in properties]
