"""
versionstore Documents — Versioned document storage on a plain filesystem.

Physical storage: {store_root}/{document}/{version_id} plus a ``latest``
pointer per document.
"""

from versionstore.documents.catalog import CatalogIndex
from versionstore.documents.models import DocumentSummary, Version
from versionstore.documents.version_log import VersionLog

__all__ = [
    "CatalogIndex",
    "DocumentSummary",
    "Version",
    "VersionLog",
]
