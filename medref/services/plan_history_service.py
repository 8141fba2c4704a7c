"""Append-only plan history log.

Independent of the medication catalog: it has its own database file, its own
store, and is never cached or rewritten. Each entry is one insert in its own
transaction, so callers may fire entries from a worker thread.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from medref.core.errors import HistoryWriteFailed, StoreUnavailable
from medref.db.store import RelationalStore
from medref.repositories.plan_history_repository import PlanHistoryRepository
from medref.schemas.plan_history import PlanHistoryEntry

logger = logging.getLogger(__name__)


class PlanHistoryLog:
    def __init__(self, store: RelationalStore | None = None) -> None:
        self.store = store or RelationalStore.for_plan_history()
        self._schema_ready = False

    def ensure_schema(self) -> None:
        self.store.ensure_schema()
        self._schema_ready = True

    def record(
        self,
        section: str | None,
        content: str,
        patient_id: str | None = None,
        encounter_date: str | None = None,
    ) -> int:
        entry = PlanHistoryEntry(
            section=section,
            content=content,
            patient_id=patient_id,
            encounter_date=encounter_date,
        )
        if not self._schema_ready:
            self.ensure_schema()
        created_at = datetime.now().isoformat()

        def _insert(db) -> int:
            row = PlanHistoryRepository(db).insert_entry(
                created_at=created_at,
                section=entry.section,
                content=entry.content,
                patient_id=entry.patient_id,
                encounter_date=entry.encounter_date,
            )
            return row.id

        try:
            return self.store.run_transaction(_insert)
        except StoreUnavailable:
            raise
        except SQLAlchemyError as exc:
            logger.exception("Failed to append plan history entry section=%s", entry.section)
            raise HistoryWriteFailed(f"plan history insert failed on {self.store.display_uri}") from exc

    def try_record(
        self,
        section: str | None,
        content: str,
        patient_id: str | None = None,
        encounter_date: str | None = None,
    ) -> bool:
        """Fire-and-forget variant of ``record``: logs failures, returns False."""
        try:
            self.record(section, content, patient_id=patient_id, encounter_date=encounter_date)
        except Exception:
            logger.exception("Plan history entry was not saved")
            return False
        return True
