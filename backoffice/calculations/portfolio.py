"""
Portfolio Aggregation

Reduces each property's revenues, expenses, invoices, mortgages and
depreciation settings into a PropertySummary, then sums the rows into
portfolio totals. Totals are always the sum of the displayed rows.
"""

import logging
from datetime import date
from typing import Iterable, List, Optional

from backoffice.calculations.amortization import calculate_mortgage_period
from backoffice.calculations.depreciation import calculate_cca
from backoffice.calculations.models import (
    PortfolioSummary,
    PortfolioTotals,
    PropertyRecord,
    PropertySummary,
)
from backoffice.calculations.numbers import round_currency, sum_currency

logger = logging.getLogger(__name__)


def weighted_average_rate(rates: Iterable[float], balances: Iterable[float]) -> Optional[float]:
    """Balance-weighted average rate, None when there is no balance."""
    numerator = 0.0
    denominator = 0.0
    for rate, balance in zip(rates, balances):
        numerator += rate * balance
        denominator += balance
    if denominator <= 0:
        return None
    return numerator / denominator


def loan_to_value(debt: float, value: float) -> Optional[float]:
    if debt <= 0 or value <= 0:
        return None
    return debt / value


def summarize_property(record: PropertyRecord, as_of: Optional[date] = None) -> PropertySummary:
    """
    Compute the KPIs of a single property.

    Revenue and expense amounts are taken as stored (one period's value),
    not multiplied by their occurrences.
    """
    income = sum_currency(r.amount for r in record.revenues)
    expenses = sum_currency(
        [e.amount for e in record.expenses] + [i.total for i in record.invoices]
    )

    periods = [calculate_mortgage_period(m, as_of=as_of) for m in record.mortgages]
    debt_service = sum_currency(p.payment for p in periods)
    interest = sum_currency(p.interest for p in periods)
    principal = sum_currency(p.principal for p in periods)
    outstanding = sum_currency(p.outstanding_balance for p in periods)

    # Principal repayment is not deductible
    net_income_before_cca = income - expenses - interest
    cca = round_currency(calculate_cca(record.depreciation, net_income_before_cca))

    current_value = round_currency(record.current_value)

    return PropertySummary(
        property_id=record.id,
        property_name=record.name,
        current_value=current_value,
        gross_income=income,
        operating_expenses=expenses,
        debt_service=debt_service,
        interest_portion=interest,
        principal_portion=principal,
        net_cashflow=round_currency(income - expenses - debt_service),
        cca=cca,
        equity=round_currency(current_value - outstanding),
        units_count=len(record.units),
        rent_potential_monthly=sum_currency(u.rent_expected or 0.0 for u in record.units),
        square_feet_total=sum(u.square_feet or 0.0 for u in record.units),
        mortgage_count=len(record.mortgages),
        outstanding_debt=outstanding,
        average_mortgage_rate=weighted_average_rate(
            (m.annual_rate for m in record.mortgages),
            (p.outstanding_balance for p in periods),
        ),
        loan_to_value=loan_to_value(outstanding, current_value),
    )


def neutral_summary(record: PropertyRecord) -> PropertySummary:
    """Zeroed row used when a property cannot be evaluated."""
    return PropertySummary(property_id=record.id, property_name=record.name)


def build_totals(summaries: List[PropertySummary]) -> PortfolioTotals:
    """Sum property rows into portfolio totals."""
    outstanding = sum_currency(s.outstanding_debt for s in summaries)
    total_value = sum_currency(s.current_value for s in summaries)
    rated = [s for s in summaries if s.average_mortgage_rate is not None]

    return PortfolioTotals(
        gross_income=sum_currency(s.gross_income for s in summaries),
        operating_expenses=sum_currency(s.operating_expenses for s in summaries),
        debt_service=sum_currency(s.debt_service for s in summaries),
        interest_portion=sum_currency(s.interest_portion for s in summaries),
        principal_portion=sum_currency(s.principal_portion for s in summaries),
        net_cashflow=sum_currency(s.net_cashflow for s in summaries),
        cca=sum_currency(s.cca for s in summaries),
        equity=sum_currency(s.equity for s in summaries),
        units_count=sum(s.units_count for s in summaries),
        rent_potential_monthly=sum_currency(s.rent_potential_monthly for s in summaries),
        square_feet_total=sum(s.square_feet_total for s in summaries),
        mortgage_count=sum(s.mortgage_count for s in summaries),
        outstanding_debt=outstanding,
        average_mortgage_rate=weighted_average_rate(
            (s.average_mortgage_rate for s in rated),
            (s.outstanding_debt for s in rated),
        ),
        loan_to_value=loan_to_value(outstanding, total_value),
    )


def build_portfolio_summary(
    records: Iterable[PropertyRecord], as_of: Optional[date] = None
) -> PortfolioSummary:
    """
    Summarize every property of a portfolio and reduce to totals.

    A property that fails to evaluate contributes a zeroed row instead of
    aborting the whole summary.
    """
    if as_of is None:
        as_of = date.today()

    summaries = []
    for record in records:
        try:
            summaries.append(summarize_property(record, as_of=as_of))
        except (ArithmeticError, ValueError, TypeError, AttributeError):
            logger.warning(
                "Property %s (%s) could not be summarized; using a neutral row",
                record.id,
                record.name,
                exc_info=True,
            )
            summaries.append(neutral_summary(record))

    return PortfolioSummary(properties=summaries, totals=build_totals(summaries))
