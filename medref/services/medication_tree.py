"""In-memory nodes of the medication reference tree.

Nodes compare by identity: two items with the same text in the same group are
different items, and ``remove_item`` relies on that.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(eq=False)
class MedicationItem:
    text: str
    order: int = 0


@dataclass(eq=False)
class MedicationGroup:
    title: str
    medications: list[MedicationItem] = field(default_factory=list)
    order: int = 0

    def find_item(self, text: str) -> MedicationItem | None:
        for item in self.medications:
            if item.text == text:
                return item
        return None


@dataclass(eq=False)
class Category:
    name: str
    groups: list[MedicationGroup] = field(default_factory=list)
    order: int = 0

    def find_group(self, title: str) -> MedicationGroup | None:
        for group in self.groups:
            if group.title == title:
                return group
        return None
