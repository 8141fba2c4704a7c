from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from medref.models.medication import CategoryModel, MedicationGroupModel, MedicationItemModel


@dataclass
class CategoryRow:
    id: int
    name: str


@dataclass
class GroupRow:
    id: int
    category_id: int
    title: str


@dataclass
class ItemRow:
    group_id: int
    text: str


class MedicationRepository:
    """Row-level access to the reference tree tables.

    Reads return rows already sorted by ``display_order`` (ties broken by id);
    writes assume the caller owns the surrounding transaction.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def fetch_categories(self) -> list[CategoryRow]:
        stmt = select(CategoryModel.id, CategoryModel.name).order_by(
            CategoryModel.display_order.asc(),
            CategoryModel.id.asc(),
        )
        return [CategoryRow(id=r.id, name=r.name) for r in self.db.execute(stmt).all()]

    def fetch_groups(self) -> list[GroupRow]:
        stmt = select(
            MedicationGroupModel.id,
            MedicationGroupModel.category_id,
            MedicationGroupModel.title,
        ).order_by(
            MedicationGroupModel.category_id.asc(),
            MedicationGroupModel.display_order.asc(),
            MedicationGroupModel.id.asc(),
        )
        return [
            GroupRow(id=r.id, category_id=r.category_id, title=r.title)
            for r in self.db.execute(stmt).all()
        ]

    def fetch_items(self) -> list[ItemRow]:
        stmt = select(MedicationItemModel.group_id, MedicationItemModel.text).order_by(
            MedicationItemModel.group_id.asc(),
            MedicationItemModel.display_order.asc(),
            MedicationItemModel.id.asc(),
        )
        return [ItemRow(group_id=r.group_id, text=r.text) for r in self.db.execute(stmt).all()]

    def delete_all(self) -> None:
        # Children first; no reliance on ON DELETE CASCADE.
        self.db.execute(delete(MedicationItemModel))
        self.db.execute(delete(MedicationGroupModel))
        self.db.execute(delete(CategoryModel))

    def insert_category(self, name: str, display_order: int) -> int:
        row = CategoryModel(name=name, display_order=display_order)
        self.db.add(row)
        self.db.flush()
        return row.id

    def insert_group(self, category_id: int, title: str, display_order: int) -> int:
        row = MedicationGroupModel(category_id=category_id, title=title, display_order=display_order)
        self.db.add(row)
        self.db.flush()
        return row.id

    def insert_items(self, group_id: int, texts: Sequence[str]) -> None:
        if not texts:
            return
        self.db.execute(
            insert(MedicationItemModel),
            [
                {"group_id": group_id, "text": text, "display_order": position}
                for position, text in enumerate(texts)
            ],
        )
