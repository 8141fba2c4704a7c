from __future__ import annotations

import logging
from pathlib import Path

from medref.core.config import settings
from medref.core.errors import MedrefStoreError
from medref.scripts.load_medication_csv import load_medication_csv
from medref.services.medication_catalog import MedicationCatalog
from medref.services.plan_history_service import PlanHistoryLog

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _seed_if_empty(catalog: MedicationCatalog, seed_csv_path: str | None) -> None:
    if catalog.get_ordered_categories():
        logger.info("medication reference data already present; skipping seed")
        return
    if not seed_csv_path:
        logger.info("No seed CSV configured; medication reference data starts empty")
        return
    if not Path(seed_csv_path).exists():
        logger.warning("Seed CSV not found at %s; skipping seed", seed_csv_path)
        return

    logger.info("Seeding medication reference data from %s", seed_csv_path)
    load_medication_csv(seed_csv_path, catalog=catalog)


def bootstrap(
    catalog: MedicationCatalog | None = None,
    history: PlanHistoryLog | None = None,
    seed_csv_path: str | None = None,
) -> None:
    _configure_logging()

    catalog = catalog or MedicationCatalog()
    history = history or PlanHistoryLog()
    seed_csv_path = seed_csv_path if seed_csv_path is not None else settings.seed_csv_path

    try:
        catalog.load()
    except MedrefStoreError:
        logger.exception("Startup bootstrap failed while loading medication reference data")
        return

    # History is independent of the reference tree; a broken history file
    # must not block seeding.
    try:
        history.ensure_schema()
    except MedrefStoreError:
        logger.exception("Startup bootstrap failed while ensuring plan_history schema")

    try:
        _seed_if_empty(catalog, seed_csv_path)
    except (MedrefStoreError, ValueError):
        logger.exception("Startup bootstrap failed while seeding medication reference data")


def main() -> None:
    try:
        bootstrap()
    except Exception:
        # Never crash startup process due to bootstrap tasks.
        logger.exception("Startup bootstrap terminated with unexpected error")


if __name__ == "__main__":
    main()
