"""
Database configuration and models.
"""

from backoffice.db.database import engine, SessionLocal, get_db
from backoffice.db.models import Base

__all__ = ["engine", "SessionLocal", "get_db", "Base"]
