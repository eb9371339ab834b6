"""
Payment Cadence

Periods-per-year codes and the calendar step taken between two
consecutive payments. The day-based steps are fixed approximations
(26 x 14 = 364 days) and are relied upon by the schedule and the
elapsed-period projection alike.
"""

from datetime import date, timedelta
from enum import IntEnum
from typing import Callable, Dict, Optional

from dateutil.relativedelta import relativedelta

from backoffice.calculations.numbers import round_half_up


class PaymentCadence(IntEnum):
    """Supported payment frequencies, valued as periods per year."""

    ANNUAL = 1
    SEMI_ANNUAL = 2
    QUARTERLY = 4
    MONTHLY = 12
    SEMI_MONTHLY = 24
    BIWEEKLY = 26
    WEEKLY = 52


def _add_months(months: int) -> Callable[[date], date]:
    # relativedelta clamps to the last valid day of shorter months
    return lambda previous: previous + relativedelta(months=months)


def _add_days(days: int) -> Callable[[date], date]:
    return lambda previous: previous + timedelta(days=days)


CADENCE_STEPS: Dict[PaymentCadence, Callable[[date], date]] = {
    PaymentCadence.MONTHLY: _add_months(1),
    PaymentCadence.SEMI_MONTHLY: _add_days(15),
    PaymentCadence.BIWEEKLY: _add_days(14),
    PaymentCadence.WEEKLY: _add_days(7),
    PaymentCadence.QUARTERLY: _add_months(3),
    PaymentCadence.SEMI_ANNUAL: _add_months(6),
    PaymentCadence.ANNUAL: _add_months(12),
}


def as_cadence(frequency: int) -> Optional[PaymentCadence]:
    """Return the enumerated cadence for a frequency, or None if unlisted."""
    try:
        return PaymentCadence(frequency)
    except ValueError:
        return None


def advance_payment_date(previous: date, frequency: int) -> date:
    """
    Step a payment date forward by one period.

    Unlisted frequencies advance by round(365 / frequency) days.
    """
    cadence = as_cadence(frequency)
    if cadence is not None:
        return CADENCE_STEPS[cadence](previous)
    return previous + timedelta(days=round_half_up(365 / max(1, frequency)))


def total_periods(amortization_months: int, frequency: int) -> int:
    """Number of payments needed to amortize over the given months."""
    if amortization_months <= 0 or frequency <= 0:
        return 0
    return max(0, round_half_up(amortization_months / 12 * frequency))


def elapsed_periods(start_date: date, as_of: date, frequency: int, periods: int) -> int:
    """
    Whole periods elapsed between start_date and as_of.

    A period lasts 365 / frequency days; the result is clamped to
    [0, periods].
    """
    if frequency <= 0 or as_of <= start_date:
        return 0
    days = (as_of - start_date).days
    return max(0, min(periods, days * frequency // 365))
