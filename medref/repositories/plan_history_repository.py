from __future__ import annotations

from sqlalchemy.orm import Session

from medref.models.plan_history import PlanHistory


class PlanHistoryRepository:
    """Insert-only access to plan_history; there is no update or delete path."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def insert_entry(
        self,
        *,
        created_at: str,
        section: str | None,
        content: str,
        patient_id: str | None,
        encounter_date: str | None,
    ) -> PlanHistory:
        row = PlanHistory(
            created_at=created_at,
            section=section,
            content=content,
            patient_id=patient_id,
            encounter_date=encounter_date,
        )
        self.db.add(row)
        self.db.flush()
        return row
