"""Declarative base for the snapshot tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Shared metadata for the site, visitor, event and tracked-link rows."""
