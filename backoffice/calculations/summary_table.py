"""
Tabular view of a portfolio summary for document export.
"""

from typing import Dict, List

from backoffice.calculations.models import PortfolioSummary, PortfolioTotals

SUMMARY_TABLE_COLUMNS = [
    ("label", "Property"),
    ("units_count", "Units"),
    ("rent_potential_monthly", "Rent potential"),
    ("outstanding_debt", "Outstanding debt"),
    ("loan_to_value", "LTV (%)"),
    ("gross_income", "Income"),
    ("operating_expenses", "Expenses"),
    ("debt_service", "Debt service"),
    ("interest_portion", "Interest"),
    ("principal_portion", "Principal"),
    ("net_cashflow", "Net cashflow"),
    ("cca", "CCA"),
    ("equity", "Equity"),
]


def _row(label: str, figures: PortfolioTotals) -> Dict:
    row = {"label": label}
    for key, _ in SUMMARY_TABLE_COLUMNS[1:]:
        row[key] = getattr(figures, key)
    return row


def build_summary_table(summary: PortfolioSummary) -> Dict[str, List]:
    """One row per property plus a TOTAL row built from the same figures."""
    return {
        "headers": [title for _, title in SUMMARY_TABLE_COLUMNS],
        "rows": [_row(p.property_name, p) for p in summary.properties],
        "totals": _row("TOTAL", summary.totals),
    }
