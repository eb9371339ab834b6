"""
Engine records.

Inputs are read-only snapshots built by the ingestion layer; outputs are
recomputed on every read and never persisted.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class Frequency(str, enum.Enum):
    """Recurrence of a revenue or expense event."""

    one_time = "one-time"
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    annual = "annual"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoanTerms:
    """Static terms of a fixed-rate mortgage."""

    principal: float
    annual_rate: float  # decimal, e.g. 0.05 for 5%
    term_months: int
    amortization_months: int
    start_date: date
    payment_frequency: int  # periods per year
    payment_amount: Optional[float] = None  # persisted or explicit override


@dataclass(frozen=True)
class RecurringCashFlowEvent:
    """A revenue or expense repeating at a fixed frequency."""

    label: str
    amount: float  # value per occurrence
    frequency: Optional[Frequency]  # None when the stored code is unknown
    start_date: date
    end_date: Optional[date] = None
    category: Optional[str] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class DepreciationSetting:
    """Capital cost allowance class settings for a property."""

    class_code: str
    cca_rate: float
    opening_ucc: float = 0.0
    additions: float = 0.0
    dispositions: float = 0.0


@dataclass(frozen=True)
class Invoice:
    """One-off supplier invoice with its two sales taxes."""

    amount: float
    tax1: float = 0.0
    tax2: float = 0.0

    @property
    def total(self) -> float:
        return self.amount + self.tax1 + self.tax2


@dataclass(frozen=True)
class PropertyUnit:
    label: str
    square_feet: Optional[float] = None
    rent_expected: Optional[float] = None


@dataclass(frozen=True)
class PropertyRecord:
    """A property and everything it owns, as loaded for one user."""

    id: str
    name: str
    current_value: float = 0.0
    mortgages: List[LoanTerms] = field(default_factory=list)
    revenues: List[RecurringCashFlowEvent] = field(default_factory=list)
    expenses: List[RecurringCashFlowEvent] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)
    units: List[PropertyUnit] = field(default_factory=list)
    depreciation: Optional[DepreciationSetting] = None


# ---------------------------------------------------------------------------
# Amortization outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScheduleEntry:
    period_index: int
    payment_date: date
    payment_amount: float
    interest_portion: float
    principal_portion: float
    remaining_balance: float

    def to_dict(self) -> Dict:
        return {
            "period_index": self.period_index,
            "payment_date": self.payment_date.isoformat(),
            "payment_amount": self.payment_amount,
            "interest_portion": self.interest_portion,
            "principal_portion": self.principal_portion,
            "remaining_balance": self.remaining_balance,
        }


@dataclass(frozen=True)
class TermSummary:
    """Slice of the schedule covered by the contractual term."""

    periods: int
    end_date: Optional[date]
    total_principal: float
    total_interest: float
    balance_remaining: float

    def to_dict(self) -> Dict:
        return {
            "periods": self.periods,
            "end_date": _iso(self.end_date),
            "total_principal": self.total_principal,
            "total_interest": self.total_interest,
            "balance_remaining": self.balance_remaining,
        }


@dataclass(frozen=True)
class AnnualBreakdown:
    year: int
    total_interest: float
    total_principal: float
    ending_balance: float

    def to_dict(self) -> Dict:
        return {
            "year": self.year,
            "total_interest": self.total_interest,
            "total_principal": self.total_principal,
            "ending_balance": self.ending_balance,
        }


@dataclass(frozen=True)
class AmortizationAnalysis:
    """Full amortization projection of a loan."""

    payment_amount: float
    total_periods: int
    payoff_date: Optional[date]
    total_principal: float
    total_interest: float
    total_paid: float
    term_summary: TermSummary
    annual_breakdown: List[AnnualBreakdown]
    schedule: List[ScheduleEntry]

    def to_dict(self) -> Dict:
        return {
            "payment_amount": self.payment_amount,
            "total_periods": self.total_periods,
            "payoff_date": _iso(self.payoff_date),
            "total_principal": self.total_principal,
            "total_interest": self.total_interest,
            "total_paid": self.total_paid,
            "term_summary": self.term_summary.to_dict(),
            "annual_breakdown": [row.to_dict() for row in self.annual_breakdown],
            "schedule": [entry.to_dict() for entry in self.schedule],
        }


@dataclass(frozen=True)
class MortgagePeriod:
    """Current-period snapshot of a loan."""

    payment: float
    interest: float
    principal: float
    outstanding_balance: float  # before the current payment
    balance_after_payment: float
    periods_elapsed: int = 0

    def to_dict(self) -> Dict:
        return {
            "payment": self.payment,
            "interest": self.interest,
            "principal": self.principal,
            "outstanding_balance": self.outstanding_balance,
            "balance_after_payment": self.balance_after_payment,
            "periods_elapsed": self.periods_elapsed,
        }


# ---------------------------------------------------------------------------
# Portfolio outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PortfolioTotals:
    gross_income: float = 0.0
    operating_expenses: float = 0.0
    debt_service: float = 0.0
    interest_portion: float = 0.0
    principal_portion: float = 0.0
    net_cashflow: float = 0.0
    cca: float = 0.0
    equity: float = 0.0
    units_count: int = 0
    rent_potential_monthly: float = 0.0
    square_feet_total: float = 0.0
    mortgage_count: int = 0
    outstanding_debt: float = 0.0
    average_mortgage_rate: Optional[float] = None
    loan_to_value: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            "gross_income": self.gross_income,
            "operating_expenses": self.operating_expenses,
            "debt_service": self.debt_service,
            "interest_portion": self.interest_portion,
            "principal_portion": self.principal_portion,
            "net_cashflow": self.net_cashflow,
            "cca": self.cca,
            "equity": self.equity,
            "units_count": self.units_count,
            "rent_potential_monthly": self.rent_potential_monthly,
            "square_feet_total": self.square_feet_total,
            "mortgage_count": self.mortgage_count,
            "outstanding_debt": self.outstanding_debt,
            "average_mortgage_rate": self.average_mortgage_rate,
            "loan_to_value": self.loan_to_value,
        }


@dataclass(frozen=True)
class PropertySummary(PortfolioTotals):
    """Per-property KPIs; shares every figure with the portfolio totals."""

    property_id: str = ""
    property_name: str = ""
    current_value: float = 0.0

    def to_dict(self) -> Dict:
        data = {
            "property_id": self.property_id,
            "property_name": self.property_name,
            "current_value": self.current_value,
        }
        data.update(super().to_dict())
        return data


@dataclass(frozen=True)
class PortfolioSummary:
    properties: List[PropertySummary]
    totals: PortfolioTotals

    def to_dict(self) -> Dict:
        return {
            "properties": [p.to_dict() for p in self.properties],
            "totals": self.totals.to_dict(),
        }


# ---------------------------------------------------------------------------
# Fiscal report
# ---------------------------------------------------------------------------


@dataclass
class FiscalReportItem:
    event_id: Optional[str]
    label: str
    frequency: Frequency
    occurrences: int
    unit_amount: float
    total_amount: float
    start_date: date
    end_date: Optional[date]

    def to_dict(self) -> Dict:
        return {
            "event_id": self.event_id,
            "label": self.label,
            "frequency": self.frequency.value,
            "occurrences": self.occurrences,
            "unit_amount": self.unit_amount,
            "total_amount": self.total_amount,
            "start_date": self.start_date.isoformat(),
            "end_date": _iso(self.end_date),
        }


@dataclass
class FiscalReportCategory:
    category: str
    total_amount: float = 0.0
    items: List[FiscalReportItem] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "category": self.category,
            "total_amount": self.total_amount,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass
class FiscalReportProperty:
    property_id: str
    property_name: str
    total_amount: float = 0.0
    categories: List[FiscalReportCategory] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "property_id": self.property_id,
            "property_name": self.property_name,
            "total_amount": self.total_amount,
            "categories": [c.to_dict() for c in self.categories],
        }


@dataclass
class FiscalReport:
    year: int
    generated_at: datetime
    total_amount: float = 0.0
    properties: List[FiscalReportProperty] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "year": self.year,
            "generated_at": self.generated_at.isoformat(),
            "total_amount": self.total_amount,
            "properties": [p.to_dict() for p in self.properties],
        }
