"""
Portfolio summary and fiscal report endpoints.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backoffice.calculations.fiscal_report import build_fiscal_report
from backoffice.calculations.portfolio import build_portfolio_summary
from backoffice.calculations.summary_table import build_summary_table
from backoffice.config import get_settings
from backoffice.db.database import get_db
from backoffice.services.portfolio_loader import load_portfolio

router = APIRouter()


@router.get("/summary")
async def get_summary(
    owner_id: str,
    as_of: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Per-property KPIs, portfolio totals and the summary table."""
    summary = build_portfolio_summary(load_portfolio(db, owner_id), as_of=as_of)
    return {
        **summary.to_dict(),
        "table": build_summary_table(summary),
    }


@router.get("/reports/fiscal")
async def get_fiscal_report(
    owner_id: str,
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    db: Session = Depends(get_db),
):
    """Yearly expense totals grouped by property and category."""
    settings = get_settings()
    report = build_fiscal_report(
        load_portfolio(db, owner_id),
        year or date.today().year,
        max_iterations=settings.recurrence_max_iterations,
    )
    return report.to_dict()
