from collections.abc import Callable

import pytest

from medref.db.store import RelationalStore
from medref.services.medication_catalog import MedicationCatalog
from medref.services.plan_history_service import PlanHistoryLog

REFERENCE_TABLES = ("categories", "medication_groups", "medication_items")


@pytest.fixture
def database_uri(tmp_path) -> str:
    return f"sqlite:///{(tmp_path / 'db' / 'med_data.db').as_posix()}"


@pytest.fixture
def store(database_uri):
    store = RelationalStore.for_medication_data(database_uri)
    yield store
    store.dispose()


@pytest.fixture
def catalog(store) -> MedicationCatalog:
    return MedicationCatalog(store)


@pytest.fixture
def history_store(tmp_path):
    store = RelationalStore.for_plan_history(f"sqlite:///{(tmp_path / 'db' / 'plan_history.db').as_posix()}")
    yield store
    store.dispose()


@pytest.fixture
def history(history_store) -> PlanHistoryLog:
    return PlanHistoryLog(history_store)


@pytest.fixture
def dump_tables() -> Callable[[RelationalStore], dict[str, list[tuple]]]:
    """Full contents of the reference tables, for before/after comparisons."""

    def _dump(store: RelationalStore) -> dict[str, list[tuple]]:
        return {
            table: [tuple(row) for row in store.query(f"SELECT * FROM {table} ORDER BY id")]
            for table in REFERENCE_TABLES
        }

    return _dump


@pytest.fixture
def unavailable_uri(tmp_path) -> str:
    blocker = tmp_path / "not_a_directory"
    blocker.write_text("occupied", encoding="utf-8")
    return f"sqlite:///{(blocker / 'med_data.db').as_posix()}"
