"""
versionstore — Versioned document store on a plain filesystem.

Each document is a directory of immutable, timestamp-named versions plus a
``latest`` pointer that is swapped atomically on every save.

    from versionstore import VersionLog, CatalogIndex

    log = VersionLog("files")
    v1 = log.save("notes", "hello")
    log.read("notes")            # "hello"
    log.list_versions("notes")   # [v1]
    CatalogIndex("files").list_documents()  # {"notes"}
"""

__version__ = "1.0.0"

from versionstore.documents import CatalogIndex, DocumentSummary, Version, VersionLog  # noqa: E402
from versionstore.engine.errors import (  # noqa: E402
    CorruptionError,
    InvalidNameError,
    NotFoundError,
    StoreIOError,
    VersionStoreError,
)

__all__ = [
    "CatalogIndex",
    "DocumentSummary",
    "Version",
    "VersionLog",
    "VersionStoreError",
    "InvalidNameError",
    "NotFoundError",
    "StoreIOError",
    "CorruptionError",
]
