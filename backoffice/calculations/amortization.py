"""
Loan Amortization Calculations

Fixed periodic payment, full amortization schedule and the current-period
snapshot used for portfolio reads. Every amount is rounded to cents at
each step so the schedule and the snapshot agree to the cent.

Degenerate terms (non-positive principal, frequency or amortization)
produce zeroed results rather than errors.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from backoffice.calculations.cadence import (
    advance_payment_date,
    elapsed_periods,
    total_periods,
)
from backoffice.calculations.models import (
    AmortizationAnalysis,
    AnnualBreakdown,
    LoanTerms,
    MortgagePeriod,
    ScheduleEntry,
    TermSummary,
)
from backoffice.calculations.numbers import round_currency, round_half_up

# Balances below one cent are treated as paid off.
BALANCE_EPSILON = 0.01


def calculate_payment(
    principal: float,
    annual_rate: float,
    amortization_months: int,
    payment_frequency: int = 12,
) -> float:
    """
    Calculate the fixed periodic payment (annuity formula).

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal (e.g., 0.05 for 5%)
        amortization_months: Total amortization period in months
        payment_frequency: Payments per year

    Returns:
        Payment per period rounded to cents, 0 for degenerate terms
    """
    if principal <= 0 or payment_frequency <= 0 or amortization_months <= 0:
        return 0.0

    periods = total_periods(amortization_months, payment_frequency)
    if periods <= 0:
        return 0.0

    rate_per_period = annual_rate / payment_frequency

    if rate_per_period == 0:
        return round_currency(principal / periods)

    try:
        denominator = 1 - (1 + rate_per_period) ** -periods
    except (OverflowError, ZeroDivisionError):
        denominator = 0.0
    if denominator == 0:
        return round_currency(principal / periods)

    return round_currency(principal * rate_per_period / denominator)


@dataclass(frozen=True)
class _PeriodResult:
    payment: float
    interest: float
    principal: float
    balance: float


def rounding_tolerance(rate_per_period: float, periods: int) -> float:
    """
    Largest final-period shortfall attributable to cent rounding.

    Half a cent of payment rounding and half a cent of interest rounding
    per period, compounded to the end of the schedule.
    """
    if periods <= 0:
        return 0.0
    if rate_per_period == 0:
        growth = float(periods)
    else:
        try:
            growth = ((1 + rate_per_period) ** periods - 1) / rate_per_period
        except OverflowError:
            return 0.0
    return round_currency(0.01 * growth)


def _amortize_period(
    balance: float, rate_per_period: float, scheduled_payment: float, settle_within: float = 0.0
) -> _PeriodResult:
    """
    Apply one payment to a balance.

    The payment is capped at what is owed. A shortfall no larger than
    ``settle_within`` is paid with it, which only the final period allows.
    """
    interest = round_currency(balance * rate_per_period)
    owed = round_currency(balance + interest)
    payment = round_currency(min(scheduled_payment, owed))
    if owed - payment <= settle_within:
        payment = owed
    principal = max(0.0, round_currency(payment - interest))
    new_balance = round_currency(balance - principal)
    if new_balance < BALANCE_EPSILON:
        new_balance = 0.0
    return _PeriodResult(payment, interest, principal, new_balance)


def _scheduled_payment(terms: LoanTerms, explicit_payment: Optional[float]) -> float:
    for candidate in (explicit_payment, terms.payment_amount):
        if candidate is not None and candidate > 0:
            return candidate
    return calculate_payment(
        terms.principal,
        terms.annual_rate,
        terms.amortization_months,
        terms.payment_frequency,
    )


def _empty_analysis(principal: float) -> AmortizationAnalysis:
    return AmortizationAnalysis(
        payment_amount=0.0,
        total_periods=0,
        payoff_date=None,
        total_principal=0.0,
        total_interest=0.0,
        total_paid=0.0,
        term_summary=TermSummary(
            periods=0,
            end_date=None,
            total_principal=0.0,
            total_interest=0.0,
            balance_remaining=round_currency(principal),
        ),
        annual_breakdown=[],
        schedule=[],
    )


def build_amortization_schedule(
    terms: LoanTerms, explicit_payment: Optional[float] = None
) -> AmortizationAnalysis:
    """
    Generate the full amortization schedule with term and annual subtotals.

    Args:
        terms: Loan terms
        explicit_payment: Payment override (previews of unsaved loans).
            Falls back to terms.payment_amount, then the annuity payment.

    Returns:
        AmortizationAnalysis; zeroed when the terms are degenerate
    """
    principal = max(0.0, terms.principal)
    frequency = terms.payment_frequency
    periods = total_periods(terms.amortization_months, frequency)

    if principal <= 0 or frequency <= 0 or terms.amortization_months <= 0 or periods == 0:
        return _empty_analysis(principal)

    rate_per_period = terms.annual_rate / frequency
    scheduled_payment = _scheduled_payment(terms, explicit_payment)
    tolerance = rounding_tolerance(rate_per_period, periods)

    schedule: List[ScheduleEntry] = []
    balance = principal
    payment_date = terms.start_date

    for period in range(1, periods + 1):
        result = _amortize_period(
            balance, rate_per_period, scheduled_payment, tolerance if period == periods else 0.0
        )
        balance = result.balance

        schedule.append(
            ScheduleEntry(
                period_index=period,
                payment_date=payment_date,
                payment_amount=result.payment,
                interest_portion=result.interest,
                principal_portion=result.principal,
                remaining_balance=balance,
            )
        )

        # Early payoff
        if balance == 0:
            break

        payment_date = advance_payment_date(payment_date, frequency)

    total_principal = round_currency(sum(e.principal_portion for e in schedule))
    total_interest = round_currency(sum(e.interest_portion for e in schedule))

    return AmortizationAnalysis(
        payment_amount=scheduled_payment,
        total_periods=len(schedule),
        payoff_date=schedule[-1].payment_date if schedule else None,
        total_principal=total_principal,
        total_interest=total_interest,
        total_paid=round_currency(total_principal + total_interest),
        term_summary=summarize_term(schedule, terms.term_months, frequency, principal),
        annual_breakdown=summarize_by_year(schedule),
        schedule=schedule,
    )


def summarize_term(
    schedule: List[ScheduleEntry], term_months: int, frequency: int, principal: float
) -> TermSummary:
    """Subtotal the schedule over the contractual term."""
    term_periods = 0
    if term_months > 0 and frequency > 0:
        term_periods = min(len(schedule), max(0, round_half_up(term_months / 12 * frequency)))

    if term_periods == 0:
        return TermSummary(
            periods=0,
            end_date=None,
            total_principal=0.0,
            total_interest=0.0,
            balance_remaining=round_currency(principal),
        )

    term_slice = schedule[:term_periods]
    return TermSummary(
        periods=term_periods,
        end_date=term_slice[-1].payment_date,
        total_principal=round_currency(sum(e.principal_portion for e in term_slice)),
        total_interest=round_currency(sum(e.interest_portion for e in term_slice)),
        balance_remaining=term_slice[-1].remaining_balance,
    )


def summarize_by_year(schedule: List[ScheduleEntry]) -> List[AnnualBreakdown]:
    """Group schedule entries by calendar year of payment, ascending."""
    years: "OrderedDict[int, dict]" = OrderedDict()
    for entry in schedule:
        totals = years.setdefault(
            entry.payment_date.year, {"interest": 0.0, "principal": 0.0, "balance": 0.0}
        )
        totals["interest"] += entry.interest_portion
        totals["principal"] += entry.principal_portion
        totals["balance"] = entry.remaining_balance

    return [
        AnnualBreakdown(
            year=year,
            total_interest=round_currency(totals["interest"]),
            total_principal=round_currency(totals["principal"]),
            ending_balance=round_currency(totals["balance"]),
        )
        for year, totals in sorted(years.items())
    ]


def calculate_mortgage_period(
    terms: LoanTerms, as_of: Optional[date] = None
) -> MortgagePeriod:
    """
    Current-period snapshot of a loan without building its schedule.

    Replays the elapsed payments (365 / frequency days each) to find the
    balance before the current payment, then applies the current payment.

    Args:
        terms: Loan terms; a persisted payment_amount > 0 is used as is
        as_of: Reference date (defaults to today)

    Returns:
        MortgagePeriod with the current payment split and balances
    """
    frequency = terms.payment_frequency
    balance = max(0.0, terms.principal)
    periods = total_periods(terms.amortization_months, frequency)

    if balance <= 0 or frequency <= 0 or periods == 0:
        return MortgagePeriod(
            payment=0.0,
            interest=0.0,
            principal=0.0,
            outstanding_balance=round_currency(balance),
            balance_after_payment=round_currency(balance),
        )

    if as_of is None:
        as_of = date.today()

    rate_per_period = terms.annual_rate / frequency
    scheduled_payment = _scheduled_payment(terms, None)
    tolerance = rounding_tolerance(rate_per_period, periods)
    paid = elapsed_periods(terms.start_date, as_of, frequency, periods)

    for period in range(1, paid + 1):
        balance = _amortize_period(
            balance, rate_per_period, scheduled_payment, tolerance if period == periods else 0.0
        ).balance
        if balance == 0:
            break

    if balance == 0:
        return MortgagePeriod(
            payment=0.0,
            interest=0.0,
            principal=0.0,
            outstanding_balance=0.0,
            balance_after_payment=0.0,
            periods_elapsed=paid,
        )

    current = _amortize_period(
        balance, rate_per_period, scheduled_payment, tolerance if paid + 1 == periods else 0.0
    )
    return MortgagePeriod(
        payment=current.payment,
        interest=current.interest,
        principal=current.principal,
        outstanding_balance=round_currency(balance),
        balance_after_payment=current.balance,
        periods_elapsed=paid,
    )
