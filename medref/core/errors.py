"""Error taxonomy for the reference stores.

Driver-level failures never leave the store/catalog boundary as raw
SQLAlchemy errors; they are logged and re-raised as one of these types with
the original exception chained as ``__cause__``.
"""


class MedrefStoreError(RuntimeError):
    pass


class StoreUnavailable(MedrefStoreError):
    """The backing database file or its schema cannot be opened or created."""


class LoadFailed(MedrefStoreError):
    """Reading the reference tree failed; the cache stays unloaded."""


class CommitFailed(MedrefStoreError):
    """The full-rewrite transaction was rolled back; pending changes are kept."""


class HistoryWriteFailed(MedrefStoreError):
    """An append to the plan history log did not take effect."""
