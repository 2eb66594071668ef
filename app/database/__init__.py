"""Database module for SQLAlchemy models."""

from app.database.models import DocumentRecord

__all__ = ["DocumentRecord"]
