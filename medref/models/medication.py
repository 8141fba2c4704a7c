"""SQLAlchemy models for the medication reference tree.

Rows are rewritten wholesale on every commit, so ids are not stable across
commits; ``display_order`` carries the sibling position.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from medref.db.base import Base


class CategoryModel(Base):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True)
    display_order: Mapped[int] = mapped_column(Integer)


class MedicationGroupModel(Base):
    __tablename__ = "medication_groups"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category_id: Mapped[int] = mapped_column(Integer, ForeignKey("categories.id"), index=True)
    title: Mapped[str] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer)


class MedicationItemModel(Base):
    __tablename__ = "medication_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(Integer, ForeignKey("medication_groups.id"), index=True)
    text: Mapped[str] = mapped_column(Text)
    display_order: Mapped[int] = mapped_column(Integer)
