"""Medication reference core.

Clinician-curated reference lists (categories -> groups -> items) cached in
memory and persisted to SQLite with a full-rewrite commit, plus an append-only
plan history log.
"""

__version__ = "0.1.0"
