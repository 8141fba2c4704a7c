"""Value snapshots of the medication reference tree.

The live cache compares nodes by identity; these models give the structural
view (names, titles, texts, order) used for equality checks and export.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GroupSnapshot(BaseModel):
    title: str
    items: list[str] = Field(default_factory=list)


class CategorySnapshot(BaseModel):
    name: str
    groups: list[GroupSnapshot] = Field(default_factory=list)


class MedicationTreeSnapshot(BaseModel):
    categories: list[CategorySnapshot] = Field(default_factory=list)

    @property
    def row_counts(self) -> dict[str, int]:
        groups = [g for c in self.categories for g in c.groups]
        return {
            "categories": len(self.categories),
            "groups": len(groups),
            "items": sum(len(g.items) for g in groups),
        }
