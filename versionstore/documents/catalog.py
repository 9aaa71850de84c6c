"""
versionstore CatalogIndex — Which documents currently exist.

A document exists iff ``{root}/{name}/latest`` resolves to a version file.
Directories holding only orphaned versions (a save interrupted before its
pointer swap) are not listed.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional, Set, Union

from versionstore.documents.ids import is_version_id
from versionstore.documents.models import DocumentSummary
from versionstore.documents.names import validate_name
from versionstore.documents.pointer import pointer_resolves, resolve_pointer
from versionstore.engine.config import VersionStoreConfig, get_config
from versionstore.engine.errors import (
    CorruptionError,
    InvalidNameError,
    StoreIOError,
)
from versionstore.engine.logging import log as log_event, log_store_error

logger = logging.getLogger("versionstore.documents.catalog")


class CatalogIndex:
    """Lists documents by probing each top-level directory's pointer."""

    def __init__(self, root: Union[str, Path]):
        self._root = Path(root)

    @classmethod
    def from_config(cls, config: Optional[VersionStoreConfig] = None) -> "CatalogIndex":
        config = config or get_config()
        return cls(config.store.root)

    @property
    def root(self) -> Path:
        return self._root

    def _entries(self) -> List[str]:
        try:
            return os.listdir(self._root)
        except FileNotFoundError:
            return []
        except OSError as e:
            err = StoreIOError.from_os_error(e, operation="list_documents")
            logger.error(f"Cannot scan store root {self._root}: {err.message}")
            log_event(log_store_error(err, object_type="catalog"))
            raise err from e

    def list_documents(self) -> Set[str]:
        """
        Names of all documents with a resolvable pointer, unordered.

        A failing entry (bad name, permission error, dangling pointer) is
        skipped; only an unreadable store root raises StoreIOError.
        """
        names: Set[str] = set()
        for entry in self._entries():
            try:
                validate_name(entry)
            except InvalidNameError:
                continue
            if pointer_resolves(self._root / entry):
                names.add(entry)
        return names

    def sorted_documents(self) -> List[str]:
        return sorted(self.list_documents())

    def summaries(self) -> List[DocumentSummary]:
        """Sorted catalog rows with current version and version count."""
        rows: List[DocumentSummary] = []
        for name in self.sorted_documents():
            directory = self._root / name
            try:
                current = resolve_pointer(directory)
                count = sum(1 for entry in os.listdir(directory) if is_version_id(entry))
            except (CorruptionError, OSError) as e:
                # pointer changed or vanished after the probe
                logger.debug(f"Skipping '{name}' in summary: {e}")
                continue
            if current is None:
                continue
            rows.append(DocumentSummary(name=name, current_version=current, version_count=count))
        return rows

    def __repr__(self) -> str:
        return f"<CatalogIndex root='{self._root}'>"
