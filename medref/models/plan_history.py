"""SQLAlchemy model for plan_history.

Append-only log of plan/follow-up text saved from the treatment-plan editor.
Timestamps are stored as ISO-8601 text to match existing history files.
"""

from __future__ import annotations

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from medref.db.base import HistoryBase


class PlanHistory(HistoryBase):
    __tablename__ = "plan_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[str] = mapped_column(Text, nullable=False)
    section: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    patient_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    encounter_date: Mapped[str | None] = mapped_column(Text, nullable=True)
