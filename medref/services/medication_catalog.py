"""Medication reference catalog.

Holds the categories -> groups -> items tree in memory and is the single source
of truth for reads and edits once loaded. Edits only touch memory and set the
pending-changes flag; ``commit_pending`` writes the whole tree back in one
transaction (delete everything, then re-insert in current order).

The catalog is not a singleton: create one per store and share it explicitly.
All public methods serialize on one re-entrant lock, so a commit never
interleaves with a read or an edit from another thread.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from medref.core.errors import CommitFailed, LoadFailed, StoreUnavailable
from medref.db.store import RelationalStore
from medref.repositories.medication_repository import MedicationRepository
from medref.schemas.medication_tree import CategorySnapshot, GroupSnapshot, MedicationTreeSnapshot
from medref.services.medication_tree import Category, MedicationGroup, MedicationItem

logger = logging.getLogger(__name__)


def _read_tree(db: Session) -> list[Category]:
    repository = MedicationRepository(db)
    category_rows = repository.fetch_categories()
    group_rows = repository.fetch_groups()
    item_rows = repository.fetch_items()

    items_by_group: dict[int, list[MedicationItem]] = defaultdict(list)
    for row in item_rows:
        bucket = items_by_group[row.group_id]
        bucket.append(MedicationItem(text=row.text, order=len(bucket)))

    groups_by_category: dict[int, list[MedicationGroup]] = defaultdict(list)
    for row in group_rows:
        bucket = groups_by_category[row.category_id]
        bucket.append(
            MedicationGroup(
                title=row.title,
                medications=items_by_group.pop(row.id, []),
                order=len(bucket),
            )
        )

    return [
        Category(name=row.name, groups=groups_by_category.pop(row.id, []), order=position)
        for position, row in enumerate(category_rows)
    ]


def _rewrite_tree(db: Session, snapshot: MedicationTreeSnapshot) -> None:
    repository = MedicationRepository(db)
    repository.delete_all()
    for category_order, category in enumerate(snapshot.categories):
        category_id = repository.insert_category(category.name, category_order)
        for group_order, group in enumerate(category.groups):
            group_id = repository.insert_group(category_id, group.title, group_order)
            repository.insert_items(group_id, group.items)


class MedicationCatalog:
    def __init__(self, store: RelationalStore | None = None) -> None:
        self.store = store or RelationalStore.for_medication_data()
        self._lock = threading.RLock()
        self._categories: list[Category] = []
        self._by_name: dict[str, Category] = {}
        self._loaded = False
        self._dirty = False

    @property
    def is_loaded(self) -> bool:
        with self._lock:
            return self._loaded

    def load(self) -> None:
        """Populate the cache from the store unless it is already loaded.

        Raises StoreUnavailable if the database cannot be opened and LoadFailed
        on any read error; in both cases the catalog stays unloaded and the
        call can be retried.
        """
        with self._lock:
            if self._loaded:
                return

            self.store.ensure_schema()
            try:
                categories = self.store.read(_read_tree)
            except SQLAlchemyError as exc:
                logger.exception("Failed to load medication reference data from %s", self.store.display_uri)
                raise LoadFailed(f"cannot read medication reference data from {self.store.display_uri}") from exc

            self._categories = categories
            self._by_name = {category.name: category for category in categories}
            self._loaded = True
            self._dirty = False
            counts = self._snapshot_locked().row_counts
            logger.info(
                "Loaded medication reference data categories=%s groups=%s items=%s",
                counts["categories"],
                counts["groups"],
                counts["items"],
            )

    def invalidate(self) -> None:
        """Drop the cache; the next read or edit loads from the store again."""
        with self._lock:
            if self._dirty:
                logger.warning("Discarding uncommitted medication reference changes")
            self._categories = []
            self._by_name = {}
            self._loaded = False
            self._dirty = False

    def reload(self) -> None:
        with self._lock:
            self.invalidate()
            self.load()

    def get_ordered_categories(self) -> list[str]:
        with self._lock:
            self._ensure_loaded()
            return [category.name for category in self._categories]

    def get_medication_data(self) -> dict[str, list[MedicationGroup]]:
        """Map each category name to its groups, in display order.

        The dict and lists are copies; the group and item objects are the live
        cache nodes, so they can be handed back to ``remove_item``.

        Treat the nodes and their ``medications`` lists as read-only. Editing
        them directly bypasses the lock and the pending-changes flag; go
        through the add/remove methods, or call ``mark_dirty()`` afterwards.
        """
        with self._lock:
            self._ensure_loaded()
            return {category.name: list(category.groups) for category in self._categories}

    def get_category(self, name: str) -> Category | None:
        with self._lock:
            self._ensure_loaded()
            return self._by_name.get(name)

    def get_group(self, category_name: str, group_title: str) -> MedicationGroup | None:
        with self._lock:
            category = self.get_category(category_name)
            return category.find_group(group_title) if category else None

    def snapshot(self) -> MedicationTreeSnapshot:
        with self._lock:
            self._ensure_loaded()
            return self._snapshot_locked()

    def add_category(self, name: str) -> bool:
        with self._lock:
            self._ensure_loaded()
            if name in self._by_name:
                return False
            category = Category(name=name, order=len(self._categories))
            self._categories.append(category)
            self._by_name[name] = category
            self._dirty = True
            return True

    def add_group(self, category_name: str, group_title: str) -> bool:
        with self._lock:
            self._ensure_loaded()
            category = self._by_name.get(category_name)
            if category is None or category.find_group(group_title) is not None:
                return False
            category.groups.append(MedicationGroup(title=group_title, order=len(category.groups)))
            self._dirty = True
            return True

    def add_item(self, category_name: str, group_title: str, item: MedicationItem | str) -> bool:
        with self._lock:
            self._ensure_loaded()
            category = self._by_name.get(category_name)
            group = category.find_group(group_title) if category else None
            if group is None:
                return False
            if isinstance(item, str):
                item = MedicationItem(text=item)
            elif self._holds_item_locked(item):
                return False
            item.order = len(group.medications)
            group.medications.append(item)
            self._dirty = True
            return True

    def remove_item(self, item: MedicationItem) -> bool:
        with self._lock:
            if not self._loaded:
                return False
            for category in self._categories:
                for group in category.groups:
                    for position, candidate in enumerate(group.medications):
                        if candidate is item:
                            del group.medications[position]
                            self._dirty = True
                            return True
            return False

    def mark_dirty(self) -> None:
        with self._lock:
            self._dirty = True

    def has_pending_changes(self) -> bool:
        with self._lock:
            return self._dirty

    def commit_pending(self) -> bool:
        """Write the whole tree back to the store if there is anything to write.

        Returns False when nothing was pending. On failure the transaction is
        rolled back in full, pending changes are kept, and CommitFailed is
        raised (StoreUnavailable if the database could not be opened).
        """
        with self._lock:
            if not self._loaded or not self._dirty:
                return False

            snapshot = self._snapshot_locked()
            try:
                self.store.run_transaction(lambda db: _rewrite_tree(db, snapshot))
            except StoreUnavailable:
                raise
            except Exception as exc:
                logger.exception("Failed to save medication reference data; changes kept pending")
                raise CommitFailed(f"commit to {self.store.display_uri} was rolled back") from exc

            self._renumber_locked()
            self._dirty = False
            counts = snapshot.row_counts
            logger.info(
                "Changes saved to database. categories=%s groups=%s items=%s",
                counts["categories"],
                counts["groups"],
                counts["items"],
            )
            return True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _snapshot_locked(self) -> MedicationTreeSnapshot:
        return MedicationTreeSnapshot(
            categories=[
                CategorySnapshot(
                    name=category.name,
                    groups=[
                        GroupSnapshot(title=group.title, items=[item.text for item in group.medications])
                        for group in category.groups
                    ],
                )
                for category in self._categories
            ]
        )

    def _renumber_locked(self) -> None:
        for category_order, category in enumerate(self._categories):
            category.order = category_order
            for group_order, group in enumerate(category.groups):
                group.order = group_order
                for item_order, item in enumerate(group.medications):
                    item.order = item_order

    def _holds_item_locked(self, item: MedicationItem) -> bool:
        return any(
            candidate is item
            for category in self._categories
            for group in category.groups
            for candidate in group.medications
        )
