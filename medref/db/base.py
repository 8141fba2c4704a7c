from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Reference tree tables (categories, groups, items)."""


class HistoryBase(DeclarativeBase):
    """Plan history lives in its own database file and metadata."""
