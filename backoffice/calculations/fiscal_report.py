"""
Fiscal Report

Yearly totals of recurring events grouped by property, then category.
Each item is occurrences x unit amount; subtotals roll up through
category and property. Every level is sorted alphabetically, ignoring
case and accents.
"""

import unicodedata
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Tuple

from backoffice.calculations.models import (
    FiscalReport,
    FiscalReportCategory,
    FiscalReportItem,
    FiscalReportProperty,
    PropertyRecord,
)
from backoffice.calculations.numbers import round_currency, sum_currency
from backoffice.calculations.recurrence import MAX_ITERATIONS, count_occurrences

UNCATEGORIZED = "Uncategorized"


def collation_key(text: str) -> Tuple[str, str]:
    """Accent- and case-insensitive sort key, with the raw text as tiebreaker."""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return base.casefold(), text


def build_fiscal_report(
    properties: Iterable[PropertyRecord],
    year: int,
    generated_at: Optional[datetime] = None,
    max_iterations: int = MAX_ITERATIONS,
) -> FiscalReport:
    """
    Build the fiscal report of the properties' expenses for a year.

    Events that do not occur in the year, or whose unit amount is not
    positive, are left out.
    """
    report = FiscalReport(
        year=year, generated_at=generated_at or datetime.now(timezone.utc)
    )

    for record in properties:
        entry: Optional[FiscalReportProperty] = None
        categories: Dict[str, FiscalReportCategory] = {}

        for expense in record.expenses:
            if expense.frequency is None or expense.start_date is None:
                continue
            occurrences = count_occurrences(expense, year, max_iterations)
            if occurrences == 0 or expense.amount <= 0:
                continue

            if entry is None:
                entry = FiscalReportProperty(property_id=record.id, property_name=record.name)

            name = (expense.category or "").strip() or UNCATEGORIZED
            category = categories.get(name.casefold())
            if category is None:
                category = FiscalReportCategory(category=name)
                categories[name.casefold()] = category

            total = round_currency(expense.amount * occurrences)
            category.items.append(
                FiscalReportItem(
                    event_id=expense.id,
                    label=expense.label,
                    frequency=expense.frequency,
                    occurrences=occurrences,
                    unit_amount=round_currency(expense.amount),
                    total_amount=total,
                    start_date=expense.start_date,
                    end_date=expense.end_date,
                )
            )

        if entry is None:
            continue

        for category in categories.values():
            category.items.sort(key=lambda item: collation_key(item.label))
            category.total_amount = sum_currency(item.total_amount for item in category.items)

        entry.categories = sorted(categories.values(), key=lambda c: collation_key(c.category))
        entry.total_amount = sum_currency(c.total_amount for c in entry.categories)
        report.properties.append(entry)

    report.properties.sort(key=lambda p: collation_key(p.property_name))
    report.total_amount = sum_currency(p.total_amount for p in report.properties)
    return report
