"""
Recurring Cash-Flow Valuation Engine

Pure calculation modules: loan payments and amortization, current-period
projection, recurrence counting, fiscal reports and portfolio summaries.
"""

from backoffice.calculations import (
    amortization,
    cadence,
    depreciation,
    fiscal_report,
    numbers,
    portfolio,
    recurrence,
    summary_table,
)

__all__ = [
    "amortization",
    "cadence",
    "depreciation",
    "fiscal_report",
    "numbers",
    "portfolio",
    "recurrence",
    "summary_table",
]
