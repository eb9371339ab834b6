"""
Revenue, expense, invoice and depreciation endpoints of a property.

These rows are the inputs of the portfolio summary and the fiscal
report; nothing here computes, it only validates and stores.
"""

from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date
from sqlalchemy.orm import Session

from backoffice.api.properties import get_property_or_404
from backoffice.calculations.numbers import round_currency, to_amount
from backoffice.calculations.recurrence import parse_frequency
from backoffice.db.database import get_db
from backoffice.db.models import DepreciationInfo, Expense, Invoice, Revenue

router = APIRouter()


class RevenueCreate(BaseModel):
    """Schema for creating a recurring revenue."""

    label: str = Field(min_length=1)
    amount: float = Field(gt=0)
    frequency: str = "monthly"
    start_date: date
    end_date: Optional[date] = None


class ExpenseCreate(RevenueCreate):
    """Schema for creating a recurring expense."""

    category: str = Field(min_length=1)


class RevenueResponse(BaseModel):
    id: str
    property_id: str
    label: str
    amount: float
    frequency: str
    start_date: date
    end_date: Optional[date]


class ExpenseResponse(RevenueResponse):
    category: str


class InvoiceCreate(BaseModel):
    """Schema for a supplier invoice; taxes are stored as entered."""

    supplier: str = Field(min_length=1)
    invoice_date: date
    amount: float = Field(gt=0)
    tax1: float = Field(default=0, ge=0)
    tax2: float = Field(default=0, ge=0)


class InvoiceResponse(BaseModel):
    id: str
    property_id: str
    supplier: str
    invoice_date: date
    amount: float
    tax1: float
    tax2: float
    total: float


class DepreciationUpdate(BaseModel):
    """CCA class settings; replaces the existing ones."""

    class_code: str = Field(min_length=1)
    cca_rate: float = Field(ge=0, le=1)
    opening_ucc: float = Field(default=0, ge=0)
    additions: float = Field(default=0, ge=0)
    dispositions: float = Field(default=0, ge=0)


class DepreciationResponse(DepreciationUpdate):
    property_id: str


def normalize_event(data: RevenueCreate) -> str:
    """Stored frequency code for an event body; 422 on invalid input."""
    frequency = parse_frequency(data.frequency)
    if frequency is None:
        raise HTTPException(status_code=422, detail=f"Unsupported frequency: {data.frequency}")
    if data.end_date is not None and data.end_date < data.start_date:
        raise HTTPException(status_code=422, detail="end_date is before start_date")
    return frequency.value


def revenue_to_response(row: Revenue) -> RevenueResponse:
    return RevenueResponse(
        id=row.id,
        property_id=row.property_id,
        label=row.label,
        amount=to_amount(row.amount),
        frequency=row.frequency,
        start_date=row.start_date,
        end_date=row.end_date,
    )


def expense_to_response(row: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=row.id,
        property_id=row.property_id,
        label=row.label,
        category=row.category,
        amount=to_amount(row.amount),
        frequency=row.frequency,
        start_date=row.start_date,
        end_date=row.end_date,
    )


def invoice_to_response(row: Invoice) -> InvoiceResponse:
    amount, tax1, tax2 = to_amount(row.amount), to_amount(row.tax1), to_amount(row.tax2)
    return InvoiceResponse(
        id=row.id,
        property_id=row.property_id,
        supplier=row.supplier,
        invoice_date=row.invoice_date,
        amount=amount,
        tax1=tax1,
        tax2=tax2,
        total=round_currency(amount + tax1 + tax2),
    )


def depreciation_to_response(info: DepreciationInfo) -> DepreciationResponse:
    return DepreciationResponse(
        property_id=info.property_id,
        class_code=info.class_code,
        cca_rate=to_amount(info.cca_rate),
        opening_ucc=to_amount(info.opening_ucc),
        additions=to_amount(info.additions),
        dispositions=to_amount(info.dispositions),
    )


def soft_delete_or_404(db: Session, model, property_id: str, row_id: str, name: str) -> dict:
    row = (
        db.query(model)
        .filter(model.id == row_id, model.property_id == property_id, model.is_deleted == False)
        .first()
    )
    if not row:
        raise HTTPException(status_code=404, detail=f"{name} not found")
    row.is_deleted = True
    db.commit()
    return {"deleted": True, "id": row_id}


# Revenues

@router.get("/{property_id}/revenues", response_model=List[RevenueResponse])
async def list_revenues(
    property_id: str,
    db: Session = Depends(get_db),
):
    """List the recurring revenues of a property."""
    db_property = get_property_or_404(db, property_id)
    return [revenue_to_response(r) for r in db_property.revenues if not r.is_deleted]


@router.post("/{property_id}/revenues", response_model=RevenueResponse, status_code=201)
async def create_revenue(
    property_id: str,
    revenue_data: RevenueCreate,
    db: Session = Depends(get_db),
):
    """Create a recurring revenue (rent, parking...)."""
    get_property_or_404(db, property_id)

    revenue = Revenue(
        property_id=property_id,
        label=revenue_data.label.strip(),
        amount=revenue_data.amount,
        frequency=normalize_event(revenue_data),
        start_date=revenue_data.start_date,
        end_date=revenue_data.end_date,
    )
    db.add(revenue)
    db.commit()
    db.refresh(revenue)

    return revenue_to_response(revenue)


@router.delete("/{property_id}/revenues/{revenue_id}")
async def delete_revenue(
    property_id: str,
    revenue_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete a revenue."""
    return soft_delete_or_404(db, Revenue, property_id, revenue_id, "Revenue")


# Expenses

@router.get("/{property_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    property_id: str,
    db: Session = Depends(get_db),
):
    """List the recurring expenses of a property."""
    db_property = get_property_or_404(db, property_id)
    return [expense_to_response(e) for e in db_property.expenses if not e.is_deleted]


@router.post("/{property_id}/expenses", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    property_id: str,
    expense_data: ExpenseCreate,
    db: Session = Depends(get_db),
):
    """Create a recurring expense (taxes, insurance, maintenance...)."""
    get_property_or_404(db, property_id)

    expense = Expense(
        property_id=property_id,
        label=expense_data.label.strip(),
        category=expense_data.category.strip(),
        amount=expense_data.amount,
        frequency=normalize_event(expense_data),
        start_date=expense_data.start_date,
        end_date=expense_data.end_date,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)

    return expense_to_response(expense)


@router.delete("/{property_id}/expenses/{expense_id}")
async def delete_expense(
    property_id: str,
    expense_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete an expense."""
    return soft_delete_or_404(db, Expense, property_id, expense_id, "Expense")


# Invoices

@router.get("/{property_id}/invoices", response_model=List[InvoiceResponse])
async def list_invoices(
    property_id: str,
    db: Session = Depends(get_db),
):
    """List the invoices of a property, most recent first."""
    db_property = get_property_or_404(db, property_id)
    invoices = [i for i in db_property.invoices if not i.is_deleted]
    invoices.sort(key=lambda i: i.invoice_date, reverse=True)
    return [invoice_to_response(i) for i in invoices]


@router.post("/{property_id}/invoices", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    property_id: str,
    invoice_data: InvoiceCreate,
    db: Session = Depends(get_db),
):
    """Record a supplier invoice."""
    get_property_or_404(db, property_id)

    invoice = Invoice(property_id=property_id, **invoice_data.model_dump())
    invoice.supplier = invoice.supplier.strip()
    db.add(invoice)
    db.commit()
    db.refresh(invoice)

    return invoice_to_response(invoice)


@router.delete("/{property_id}/invoices/{invoice_id}")
async def delete_invoice(
    property_id: str,
    invoice_id: str,
    db: Session = Depends(get_db),
):
    """Soft delete an invoice."""
    return soft_delete_or_404(db, Invoice, property_id, invoice_id, "Invoice")


# Depreciation

@router.get("/{property_id}/depreciation", response_model=DepreciationResponse)
async def get_depreciation(
    property_id: str,
    db: Session = Depends(get_db),
):
    """CCA settings of a property."""
    db_property = get_property_or_404(db, property_id)
    info = db_property.depreciation_info
    if info is None or info.is_deleted:
        raise HTTPException(status_code=404, detail="Depreciation settings not found")
    return depreciation_to_response(info)


@router.put("/{property_id}/depreciation", response_model=DepreciationResponse)
async def set_depreciation(
    property_id: str,
    settings_data: DepreciationUpdate,
    db: Session = Depends(get_db),
):
    """Create or replace the CCA settings of a property."""
    db_property = get_property_or_404(db, property_id)

    info = db_property.depreciation_info
    if info is None:
        info = DepreciationInfo(property_id=property_id)
        db.add(info)

    for field, value in settings_data.model_dump().items():
        setattr(info, field, value)
    info.is_deleted = False

    db.commit()
    db.refresh(info)

    return depreciation_to_response(info)
