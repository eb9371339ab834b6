"""
API routes for the back office.
"""

from fastapi import APIRouter

from backoffice.api import calculations, cashflows, properties, summary

router = APIRouter()

# Include sub-routers
router.include_router(properties.router, prefix="/properties", tags=["properties"])
router.include_router(cashflows.router, prefix="/properties", tags=["cash flows"])
router.include_router(calculations.router, prefix="/calculate", tags=["calculations"])
router.include_router(summary.router, tags=["summary"])
