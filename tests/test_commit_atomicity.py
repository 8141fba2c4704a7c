"""Failure handling: rolled-back commits, failed loads, unavailable stores."""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from medref.core.errors import CommitFailed, LoadFailed, StoreUnavailable
from medref.db.store import RelationalStore
from medref.repositories.medication_repository import MedicationRepository
from medref.services.medication_catalog import MedicationCatalog

REJECT_TRIGGER = """
CREATE TRIGGER reject_recalled_item BEFORE INSERT ON medication_items
WHEN NEW.text = 'Recalled'
BEGIN
    SELECT RAISE(ABORT, 'recalled item rejected');
END
"""


@pytest.fixture
def committed_catalog(catalog):
    catalog.add_category("Analgesics")
    catalog.add_group("Analgesics", "NSAIDs")
    catalog.add_item("Analgesics", "NSAIDs", "Ibuprofen")
    catalog.add_category("Antibiotics")
    catalog.add_group("Antibiotics", "Macrolides")
    catalog.add_item("Antibiotics", "Macrolides", "Azithromycin")
    catalog.commit_pending()
    return catalog


class TestCommitRollback:
    def test_database_error_mid_insert_leaves_store_untouched(self, store, committed_catalog, dump_tables):
        store.run_transaction(lambda db: db.execute(text(REJECT_TRIGGER)))
        before = dump_tables(store)

        committed_catalog.add_category("Antivirals")
        committed_catalog.add_group("Antivirals", "Neuraminidase inhibitors")
        committed_catalog.add_item("Antivirals", "Neuraminidase inhibitors", "Oseltamivir")
        committed_catalog.add_item("Antivirals", "Neuraminidase inhibitors", "Recalled")

        with pytest.raises(CommitFailed) as excinfo:
            committed_catalog.commit_pending()

        assert isinstance(excinfo.value.__cause__, IntegrityError)
        assert dump_tables(store) == before
        assert committed_catalog.has_pending_changes() is True

    def test_failed_commit_can_be_retried(self, store, committed_catalog):
        store.run_transaction(lambda db: db.execute(text(REJECT_TRIGGER)))
        committed_catalog.add_item("Analgesics", "NSAIDs", "Recalled")
        with pytest.raises(CommitFailed):
            committed_catalog.commit_pending()

        store.run_transaction(lambda db: db.execute(text("DROP TRIGGER reject_recalled_item")))
        assert committed_catalog.commit_pending() is True
        assert committed_catalog.has_pending_changes() is False

        reloaded = MedicationCatalog(store)
        assert [i.text for i in reloaded.get_group("Analgesics", "NSAIDs").medications] == ["Ibuprofen", "Recalled"]

    def test_python_error_mid_insert_rolls_back(self, store, committed_catalog, dump_tables, monkeypatch):
        before = dump_tables(store)
        original_insert_items = MedicationRepository.insert_items
        calls = {"count": 0}

        def _fail_on_second_group(self, group_id, texts):
            calls["count"] += 1
            if calls["count"] == 2:
                raise RuntimeError("disk full")
            return original_insert_items(self, group_id, texts)

        monkeypatch.setattr(MedicationRepository, "insert_items", _fail_on_second_group)
        committed_catalog.add_item("Analgesics", "NSAIDs", "Naproxen")

        with pytest.raises(CommitFailed) as excinfo:
            committed_catalog.commit_pending()

        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert dump_tables(store) == before
        assert committed_catalog.has_pending_changes() is True

    def test_cache_is_kept_after_failed_commit(self, store, committed_catalog):
        store.run_transaction(lambda db: db.execute(text(REJECT_TRIGGER)))
        committed_catalog.add_item("Analgesics", "NSAIDs", "Recalled")
        with pytest.raises(CommitFailed):
            committed_catalog.commit_pending()

        texts = [i.text for i in committed_catalog.get_group("Analgesics", "NSAIDs").medications]
        assert texts == ["Ibuprofen", "Recalled"]


class TestLoadFailures:
    def test_read_error_leaves_catalog_unloaded_and_retryable(self, store, catalog, monkeypatch):
        catalog.add_category("Analgesics")
        catalog.commit_pending()
        fresh = MedicationCatalog(store)

        def _broken_fetch(self):
            raise OperationalError("SELECT ... FROM medication_groups", {}, Exception("database is locked"))

        monkeypatch.setattr(MedicationRepository, "fetch_groups", _broken_fetch)
        with pytest.raises(LoadFailed):
            fresh.get_ordered_categories()
        assert fresh.is_loaded is False

        monkeypatch.undo()
        assert fresh.get_ordered_categories() == ["Analgesics"]

    def test_edit_on_failed_load_raises_and_changes_nothing(self, catalog, monkeypatch):
        def _broken_fetch(self):
            raise OperationalError("SELECT ... FROM categories", {}, Exception("disk I/O error"))

        monkeypatch.setattr(MedicationRepository, "fetch_categories", _broken_fetch)
        with pytest.raises(LoadFailed):
            catalog.add_category("Analgesics")
        assert catalog.is_loaded is False
        assert catalog.has_pending_changes() is False


class TestStoreUnavailable:
    def test_load_raises_store_unavailable(self, unavailable_uri):
        catalog = MedicationCatalog(RelationalStore.for_medication_data(unavailable_uri))
        with pytest.raises(StoreUnavailable):
            catalog.get_medication_data()
        assert catalog.is_loaded is False

    def test_commit_raises_store_unavailable_and_keeps_changes(self, catalog, monkeypatch):
        catalog.add_category("Analgesics")

        def _unavailable(fn):
            raise StoreUnavailable("cannot open database")

        monkeypatch.setattr(catalog.store, "run_transaction", _unavailable)
        with pytest.raises(StoreUnavailable):
            catalog.commit_pending()
        assert catalog.has_pending_changes() is True
