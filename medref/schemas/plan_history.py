from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class PlanHistoryEntry(BaseModel):
    section: str | None = None
    content: str = Field(..., min_length=1)
    patient_id: str | None = None
    encounter_date: str | None = None

    @field_validator("content", mode="before")
    @classmethod
    def _strip_content(cls, value: object) -> str:
        if value is None:
            raise ValueError("content is required")
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError("content must not be empty")
        return cleaned

    @field_validator("section", "patient_id", mode="before")
    @classmethod
    def _strip_optional(cls, value: object) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        return cleaned or None

    @field_validator("encounter_date", mode="before")
    @classmethod
    def _normalize_encounter_date(cls, value: object) -> str | None:
        if value is None:
            return None
        cleaned = str(value).strip()
        if not cleaned:
            return None
        if not _ISO_DATE_RE.fullmatch(cleaned):
            raise ValueError("encounter_date must be YYYY-MM-DD")
        return cleaned
