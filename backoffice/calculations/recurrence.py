"""
Recurring Cash-Flow Occurrences

Counts how many times a recurring revenue or expense falls inside a
calendar year. Occurrence k of an event is start + k steps, so the count
needs no mutable stepping state; the iteration cap only guards against a
step that fails to move the date forward.

Month-based steps are taken from the start date, not chained from the
previous occurrence, and clamp to the last day of shorter months. An
event on the 31st therefore occurs every month (Jan 31, Feb 29, Mar 31)
instead of overflowing into the following month and skipping one; a
monthly event starting 2024-01-31 counts 12 occurrences in 2024, not 11.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, Dict, Optional

from dateutil.relativedelta import relativedelta

from backoffice.calculations.models import Frequency, RecurringCashFlowEvent

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 10000

FREQUENCY_STEPS: Dict[Frequency, Callable[[int], Any]] = {
    Frequency.weekly: lambda k: timedelta(days=7 * k),
    Frequency.monthly: lambda k: relativedelta(months=k),
    Frequency.quarterly: lambda k: relativedelta(months=3 * k),
    Frequency.annual: lambda k: relativedelta(years=k),
}

_FREQUENCY_ALIASES = {
    "one-time": Frequency.one_time,
    "one_time": Frequency.one_time,
    "onetime": Frequency.one_time,
    "once": Frequency.one_time,
    "ponctuel": Frequency.one_time,
    "weekly": Frequency.weekly,
    "hebdomadaire": Frequency.weekly,
    "monthly": Frequency.monthly,
    "mensuel": Frequency.monthly,
    "quarterly": Frequency.quarterly,
    "trimestriel": Frequency.quarterly,
    "annual": Frequency.annual,
    "annually": Frequency.annual,
    "yearly": Frequency.annual,
    "annuel": Frequency.annual,
}


def parse_frequency(value: Any) -> Optional[Frequency]:
    """Map a stored frequency code to a Frequency; None if unsupported."""
    if isinstance(value, Frequency):
        return value
    if value is None:
        return Frequency.one_time
    return _FREQUENCY_ALIASES.get(str(value).strip().lower())


def _first_index_on_or_after(
    start: date, target: date, step: Callable[[int], Any], frequency: Frequency
) -> int:
    """Smallest k with start + step(k) >= target, estimated then corrected."""
    if target <= start:
        return 0

    days = (target - start).days
    if frequency == Frequency.weekly:
        k = days // 7
    else:
        months = (target.year - start.year) * 12 + (target.month - start.month)
        months_per_step = {Frequency.monthly: 1, Frequency.quarterly: 3, Frequency.annual: 12}[
            frequency
        ]
        k = max(0, months // months_per_step - 1)

    guard = 0
    while start + step(k) < target and guard < MAX_ITERATIONS:
        k += 1
        guard += 1
    return k


def count_occurrences(
    event: RecurringCashFlowEvent, year: int, max_iterations: int = MAX_ITERATIONS
) -> int:
    """
    Count occurrences of an event within [Jan 1, Dec 31] of a year.

    Args:
        event: The recurring event
        year: Calendar year
        max_iterations: Safety cap; a partial count is returned when hit

    Returns:
        Number of occurrences (0 for unknown frequencies)
    """
    window_start = date(year, 1, 1)
    window_end = date(year, 12, 31)
    start = event.start_date
    end = event.end_date

    if end is not None and end < window_start:
        return 0
    if start > window_end:
        return 0

    if event.frequency == Frequency.one_time:
        return 1 if window_start <= start <= window_end else 0

    step = FREQUENCY_STEPS.get(event.frequency)
    if step is None:
        return 0

    effective_end = min(end, window_end) if end is not None else window_end
    if effective_end < window_start:
        return 0

    k = _first_index_on_or_after(start, window_start, step, event.frequency)
    current = start + step(k)
    occurrences = 0
    iterations = 0

    while current <= effective_end:
        occurrences += 1
        k += 1
        following = start + step(k)
        iterations += 1
        if following <= current or iterations >= max_iterations:
            logger.warning(
                "Occurrence count for %r stopped early after %d steps",
                event.label,
                iterations,
            )
            break
        current = following

    return occurrences
