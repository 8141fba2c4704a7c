from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from medref.db.store import RelationalStore
from medref.services.medication_catalog import MedicationCatalog

logger = logging.getLogger(__name__)

CSV_COLUMNS = ("category", "group", "item")


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _clean_text(value: object) -> str:
    text = str(value) if value is not None else ""
    return text.strip()


def _pick_column(df: pd.DataFrame, candidates: tuple[str, ...]) -> str | None:
    for c in candidates:
        if c in df.columns:
            return c
    return None


@dataclass
class LoadSummary:
    categories_added: int = 0
    groups_added: int = 0
    items_added: int = 0
    items_skipped: int = 0


def load_medication_csv(csv_path: str, catalog: MedicationCatalog | None = None) -> LoadSummary:
    """Merge a category/group/item CSV into the catalog and commit once.

    - Column aliases: category|category_name, group|group_title|title,
      item|text|medication. Only the category column is mandatory.
    - Values are stripped; inner whitespace and case are kept as written.
    - Rows without a category are dropped; duplicate rows are collapsed.
    - An item whose text already exists in the target group is skipped, so
      re-running the same file does not duplicate entries.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")

    catalog = catalog or MedicationCatalog()
    df = pd.read_csv(path, dtype=str, encoding="utf-8", keep_default_na=False)

    col_category = _pick_column(df, ("category", "category_name"))
    col_group = _pick_column(df, ("group", "group_title", "title"))
    col_item = _pick_column(df, ("item", "text", "medication"))

    if not col_category:
        raise ValueError("CSV must include one of: category, category_name")

    def _column(name: str | None) -> pd.Series:
        if not name:
            return pd.Series([""] * len(df), index=df.index, dtype=str)
        return df[name].fillna("").map(_clean_text)

    normalized_df = pd.DataFrame(
        {
            "category": _column(col_category),
            "group": _column(col_group),
            "item": _column(col_item),
        }
    )
    blank_category = normalized_df["category"] == ""
    if blank_category.any():
        logger.warning("Skipping %s CSV row(s) without a category", int(blank_category.sum()))
    normalized_df = normalized_df[~blank_category]
    normalized_df = normalized_df.drop_duplicates(keep="first")

    summary = LoadSummary()
    for row in normalized_df.itertuples(index=False):
        if catalog.add_category(row.category):
            summary.categories_added += 1
        if not row.group:
            continue
        if catalog.add_group(row.category, row.group):
            summary.groups_added += 1
        if not row.item:
            continue

        group = catalog.get_group(row.category, row.group)
        if group is not None and group.find_item(row.item) is not None:
            summary.items_skipped += 1
            continue
        if catalog.add_item(row.category, row.group, row.item):
            summary.items_added += 1

    catalog.commit_pending()
    logger.info(
        "CSV load completed. categories=%s groups=%s items=%s skipped_items=%s",
        summary.categories_added,
        summary.groups_added,
        summary.items_added,
        summary.items_skipped,
    )
    return summary


def export_medication_csv(csv_path: str, catalog: MedicationCatalog | None = None) -> int:
    """Write the catalog as one CSV row per item; returns the row count.

    Empty groups and empty categories still get a row (blank trailing
    columns). Loading the file back reproduces the tree as long as no name is
    blank and none has leading or trailing whitespace; blank names are
    reported as warnings because the loader drops them.
    """
    catalog = catalog or MedicationCatalog()
    snapshot = catalog.snapshot()

    rows: list[dict[str, str]] = []
    for category in snapshot.categories:
        if not category.name.strip():
            logger.warning("Exporting a category with a blank name; it will not load back")
        if not category.groups:
            rows.append({"category": category.name, "group": "", "item": ""})
        for group in category.groups:
            if not group.title.strip():
                logger.warning("Exporting a blank group title in category %r; it will not load back", category.name)
            if not group.items:
                rows.append({"category": category.name, "group": group.title, "item": ""})
            for text in group.items:
                rows.append({"category": category.name, "group": group.title, "item": text})

    path = Path(csv_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows, columns=list(CSV_COLUMNS)).to_csv(path, index=False, encoding="utf-8")
    logger.info("CSV export completed. rows=%s path=%s", len(rows), path)
    return len(rows)


def main() -> None:
    parser = argparse.ArgumentParser(description="Load or export medication reference lists as CSV")
    parser.add_argument("--csv", help="CSV file to merge into the medication reference database")
    parser.add_argument("--export", help="Write the current medication reference data to this CSV file")
    parser.add_argument("--database-url", default=None, help="Override the medication database URL")
    args = parser.parse_args()

    if not args.csv and not args.export:
        parser.error("one of --csv or --export is required")

    _configure_logging()
    catalog = MedicationCatalog(RelationalStore.for_medication_data(args.database_url))
    if args.csv:
        load_medication_csv(args.csv, catalog=catalog)
    if args.export:
        export_medication_csv(args.export, catalog=catalog)


if __name__ == "__main__":
    main()
