"""
Services layer for the back office.
"""

from backoffice.services.portfolio_loader import load_portfolio, mortgage_to_terms

__all__ = ["load_portfolio", "mortgage_to_terms"]
