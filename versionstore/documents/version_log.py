"""
versionstore VersionLog — Append-only version files plus an atomic pointer.

Handles:
- Saving a new version (temp write, no-replace publish, pointer swap)
- Reading the current version or an explicit one
- Listing a document's version history

Physical storage:
    {root}/{document}/{version_id}   immutable content, UTF-8
    {root}/{document}/latest         symlink or pointer file -> version_id

Save order (a crash at any step leaves the store readable):
    1. mkdir {document}
    2. write .{uuid}.tmp, flush, fsync
    3. link temp -> {version_id}     fails if the id already exists
    4. replace latest

No locks are taken. Concurrent saves on one document both land; whichever
pointer replace happens last is the visible version.
"""

from __future__ import annotations

import errno
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

from versionstore.documents.ids import is_version_id, new_version_id, next_version_id
from versionstore.documents.models import Version
from versionstore.documents.names import validate_name
from versionstore.documents.pointer import POINTER_MODES, resolve_pointer, write_pointer
from versionstore.engine.config import VersionStoreConfig, get_config
from versionstore.engine.errors import (
    CorruptionError,
    NotFoundError,
    StoreIOError,
    VersionStoreError,
)
from versionstore.engine.logging import (
    log as log_event,
    log_store_error,
    log_version_read,
    log_version_saved,
)

logger = logging.getLogger("versionstore.documents.version_log")

# Upper bound on id bumps when concurrent writers keep colliding
MAX_PUBLISH_ATTEMPTS = 1000

# link() errors meaning "this filesystem has no hard links"
_NO_HARDLINK_ERRNOS = {
    errno.EPERM,
    errno.ENOSYS,
    getattr(errno, "ENOTSUP", errno.EPERM),
    getattr(errno, "EOPNOTSUPP", errno.EPERM),
}


class VersionLog:
    """
    Versioned storage for named documents under a single store root.

    One instance can serve any number of documents and threads; it keeps no
    state between calls besides its configuration.
    """

    def __init__(
        self,
        root: Union[str, Path],
        pointer_mode: str = "auto",
        fsync: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if pointer_mode not in POINTER_MODES:
            raise ValueError(f"pointer_mode must be one of {POINTER_MODES}, got '{pointer_mode}'")
        self._root = Path(root)
        self._pointer_mode = pointer_mode
        self._fsync = fsync
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    def from_config(cls, config: Optional[VersionStoreConfig] = None) -> "VersionLog":
        config = config or get_config()
        return cls(
            config.store.root,
            pointer_mode=config.store.pointer,
            fsync=config.store.fsync,
        )

    @property
    def root(self) -> Path:
        return self._root

    def document_dir(self, name: str) -> Path:
        """Validated directory for a document. Raises InvalidNameError."""
        return self._root / validate_name(name, self._root)

    # -------------------------------------------------------------------
    # Save
    # -------------------------------------------------------------------

    def save(self, name: str, content: str) -> str:
        """
        Store *content* as a new version of *name* and make it current.

        Returns the new version id.

        Raises:
            InvalidNameError: name failed validation (nothing is written).
            StoreIOError: a filesystem call failed. No partial version is
                left under its final name.
        """
        directory = self.document_dir(name)
        if not isinstance(content, str):
            raise TypeError(f"content must be str, got {type(content).__name__}")

        started = time.perf_counter()
        data = content.encode("utf-8")

        try:
            directory.mkdir(parents=True, exist_ok=True)
            version_id = self._publish(directory, data)
            mode = write_pointer(directory, version_id, self._pointer_mode, self._fsync)
        except OSError as e:
            raise self._io_error(e, name, "save") from e

        duration_ms = round((time.perf_counter() - started) * 1000, 3)
        logger.info(f"Saved '{name}' version {version_id} ({len(data)} bytes)")
        log_event(log_version_saved(name, version_id, len(data), duration_ms, pointer_mode=mode))
        return version_id

    def _publish(self, directory: Path, data: bytes) -> str:
        """Write *data* and expose it under a fresh id that sorts after all others."""
        tmp = directory / f".{uuid.uuid4().hex}.tmp"
        try:
            with open(tmp, "xb") as f:
                f.write(data)
                f.flush()
                if self._fsync:
                    os.fsync(f.fileno())

            existing = self._list_ids(directory)
            version_id = new_version_id(self._clock(), after=existing[-1] if existing else None)

            for _ in range(MAX_PUBLISH_ATTEMPTS):
                try:
                    self._link_exclusive(tmp, directory / version_id)
                    break
                except FileExistsError:
                    logger.debug(f"Version {version_id} already taken in {directory}; bumping")
                    version_id = next_version_id(version_id)
            else:
                raise OSError(
                    errno.EEXIST,
                    f"No free version id after {MAX_PUBLISH_ATTEMPTS} attempts",
                    str(directory),
                )
        finally:
            self._discard(tmp)

        if self._fsync:
            self._sync_directory(directory)
        return version_id

    @staticmethod
    def _link_exclusive(src: Path, dst: Path) -> None:
        """
        Make *src*'s content appear at *dst*, failing with FileExistsError if
        *dst* exists.

        Filesystems without hard links get an exclusive-create reservation
        followed by an atomic replace; the reserved name is briefly empty and
        is removed again if the replace fails.
        """
        try:
            os.link(src, dst)
            return
        except FileExistsError:
            raise
        except OSError as e:
            if e.errno not in _NO_HARDLINK_ERRNOS:
                raise

        fd = os.open(dst, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        os.close(fd)
        try:
            os.replace(src, dst)
        except OSError:
            try:
                os.unlink(dst)
            except FileNotFoundError:
                pass
            raise

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove temp file {path}: {e}")

    @staticmethod
    def _sync_directory(directory: Path) -> None:
        """Persist the new directory entry. Skipped where directories can't be opened."""
        if os.name != "posix":
            return
        fd = os.open(directory, os.O_RDONLY)
        try:
            os.fsync(fd)
        except OSError as e:
            if e.errno not in (errno.EINVAL, errno.EBADF):
                raise
        finally:
            os.close(fd)

    # -------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------

    def current_version(self, name: str) -> Optional[str]:
        """
        Id the latest pointer names, or None if there is no current version.

        A dangling or malformed pointer is logged and reported as None.
        """
        directory = self.document_dir(name)
        try:
            return resolve_pointer(directory)
        except CorruptionError as e:
            logger.warning(f"Ignoring corrupt pointer for '{name}': {e.message}")
            log_event(log_store_error(e, level="WARNING"))
            return None
        except OSError as e:
            raise self._io_error(e, name, "current_version") from e

    def exists(self, name: str) -> bool:
        return self.current_version(name) is not None

    def get(self, name: str, version_id: Optional[str] = None) -> Optional[Version]:
        """
        Load a version with its metadata.

        Without *version_id*, follows the latest pointer and returns None when
        the document has no current version. With *version_id*, reads that
        version directly.

        Raises:
            NotFoundError: *version_id* is malformed or does not exist.
            StoreIOError: the file exists but could not be read.
        """
        directory = self.document_dir(name)
        started = time.perf_counter()
        via_pointer = version_id is None

        if via_pointer:
            version_id = self.current_version(name)
            if version_id is None:
                return None
        elif not is_version_id(version_id):
            raise NotFoundError(
                f"No version '{version_id}' of '{name}'",
                document=name,
                operation="read",
                version=version_id,
            )

        try:
            with open(directory / version_id, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except FileNotFoundError as e:
            if via_pointer:
                logger.warning(f"Current version {version_id} of '{name}' vanished during read")
                return None
            raise NotFoundError(
                f"No version '{version_id}' of '{name}'",
                document=name,
                operation="read",
                version=version_id,
            ) from e
        except OSError as e:
            raise self._io_error(e, name, "read") from e
        except UnicodeDecodeError as e:
            raise StoreIOError(
                f"Version {version_id} of '{name}' is not valid UTF-8",
                document=name,
                operation="read",
                path=str(directory / version_id),
            ) from e

        duration_ms = round((time.perf_counter() - started) * 1000, 3)
        log_event(log_version_read(name, version_id, duration_ms, via_pointer))
        return Version(document=name, id=version_id, content=content)

    def read(self, name: str, version_id: Optional[str] = None) -> str:
        """
        Content of the current version, or of *version_id* when given.

        Returns "" for a document with no current version (never saved, or
        its pointer is missing or dangling).
        """
        version = self.get(name, version_id)
        return version.content if version is not None else ""

    # -------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------

    def list_versions(self, name: str) -> List[str]:
        """
        All version ids of *name*, oldest first.

        The pointer, temp files and any other stray entries are skipped.
        Returns [] when the document directory does not exist.
        """
        directory = self.document_dir(name)
        try:
            return self._list_ids(directory)
        except FileNotFoundError:
            return []
        except OSError as e:
            raise self._io_error(e, name, "list_versions") from e

    @staticmethod
    def _list_ids(directory: Path) -> List[str]:
        return sorted(entry for entry in os.listdir(directory) if is_version_id(entry))

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    def _io_error(self, exc: OSError, name: str, operation: str) -> VersionStoreError:
        err = StoreIOError.from_os_error(exc, document=name, operation=operation)
        logger.error(f"{operation} failed for '{name}': {err.message}")
        log_event(log_store_error(err))
        return err

    def __repr__(self) -> str:
        return f"<VersionLog root='{self._root}' pointer='{self._pointer_mode}'>"
