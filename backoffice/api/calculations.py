"""
Stateless calculation endpoints.

These endpoints accept inputs and return calculated results without
touching the database; used for previews in the UI.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from backoffice.calculations import amortization, cadence, depreciation, recurrence
from backoffice.calculations.models import (
    DepreciationSetting,
    Frequency,
    LoanTerms,
    RecurringCashFlowEvent,
)
from backoffice.calculations.numbers import round_currency
from backoffice.config import get_settings

router = APIRouter()


class LoanTermsInput(BaseModel):
    """Loan terms as entered by the user."""

    principal: float = Field(gt=0)
    annual_rate: float = Field(ge=0, le=1)
    term_months: int = Field(gt=0)
    amortization_months: int = Field(gt=0)
    start_date: date
    payment_frequency: int = Field(default=12, gt=0)
    payment_amount: Optional[float] = Field(default=None, gt=0)

    def to_terms(self) -> LoanTerms:
        return LoanTerms(
            principal=self.principal,
            annual_rate=self.annual_rate,
            term_months=self.term_months,
            amortization_months=self.amortization_months,
            start_date=self.start_date,
            payment_frequency=self.payment_frequency,
            payment_amount=self.payment_amount,
        )


class PaymentInput(BaseModel):
    """Input for payment calculation."""

    principal: float = Field(gt=0)
    annual_rate: float = Field(ge=0, le=1)
    amortization_months: int = Field(gt=0)
    payment_frequency: int = Field(default=12, gt=0)


class PaymentResponse(BaseModel):
    payment_amount: float
    total_periods: int


@router.post("/payment", response_model=PaymentResponse)
async def calculate_payment(inputs: PaymentInput):
    """Calculate the fixed periodic payment of a loan."""
    payment = amortization.calculate_payment(
        inputs.principal,
        inputs.annual_rate,
        inputs.amortization_months,
        inputs.payment_frequency,
    )
    return PaymentResponse(
        payment_amount=payment,
        total_periods=cadence.total_periods(
            inputs.amortization_months, inputs.payment_frequency
        ),
    )


@router.post("/amortization")
async def calculate_amortization(inputs: LoanTermsInput):
    """Generate a loan amortization schedule."""
    analysis = amortization.build_amortization_schedule(inputs.to_terms())
    return analysis.to_dict()


class OccurrencesInput(BaseModel):
    """Input for counting the occurrences of a recurring event."""

    label: str = ""
    amount: float = Field(default=0, ge=0)
    frequency: Frequency
    start_date: date
    end_date: Optional[date] = None
    years: List[int] = Field(min_length=1)


class OccurrencesResponse(BaseModel):
    frequency: Frequency
    occurrences: dict
    yearly_totals: dict


@router.post("/occurrences", response_model=OccurrencesResponse)
async def calculate_occurrences(inputs: OccurrencesInput):
    """Count occurrences of a recurring event for each requested year."""
    settings = get_settings()
    event = RecurringCashFlowEvent(
        label=inputs.label,
        amount=inputs.amount,
        frequency=inputs.frequency,
        start_date=inputs.start_date,
        end_date=inputs.end_date,
    )
    counts = {
        str(year): recurrence.count_occurrences(
            event, year, settings.recurrence_max_iterations
        )
        for year in inputs.years
    }
    return OccurrencesResponse(
        frequency=inputs.frequency,
        occurrences=counts,
        yearly_totals={
            year: round_currency(count * inputs.amount) for year, count in counts.items()
        },
    )


class CCAInput(BaseModel):
    """Input for a capital cost allowance claim."""

    class_code: str = "1"
    cca_rate: float = Field(ge=0, le=1)
    opening_ucc: float = Field(default=0, ge=0)
    additions: float = Field(default=0, ge=0)
    dispositions: float = Field(default=0, ge=0)
    net_income_before_cca: float


class CCAResponse(BaseModel):
    ucc_base: float
    cca: float


@router.post("/cca", response_model=CCAResponse)
async def calculate_cca(inputs: CCAInput):
    """Calculate the CCA claim capped at net income."""
    setting = DepreciationSetting(
        class_code=inputs.class_code,
        cca_rate=inputs.cca_rate,
        opening_ucc=inputs.opening_ucc,
        additions=inputs.additions,
        dispositions=inputs.dispositions,
    )
    return CCAResponse(
        ucc_base=round_currency(depreciation.calculate_ucc_base(setting)),
        cca=round_currency(depreciation.calculate_cca(setting, inputs.net_income_before_cca)),
    )
