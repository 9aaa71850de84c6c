"""
Latest pointer — the per-document reference to the current version.

On disk the pointer is ``<document>/latest``, either:

- a relative symlink whose target is the version id, or
- a small regular file whose content is the version id.

Both forms are written under a temporary name and moved over ``latest`` with
``os.replace``, so readers see the old pointer or the new one and never a
missing or half-written one. Readers accept either form regardless of the
mode the writer was configured with.
"""

from __future__ import annotations

import errno
import logging
import os
import uuid
from pathlib import Path
from typing import Optional

from versionstore.documents.ids import is_version_id
from versionstore.engine.errors import CorruptionError

logger = logging.getLogger("versionstore.documents.pointer")

POINTER_NAME = "latest"

MODE_AUTO = "auto"
MODE_SYMLINK = "symlink"
MODE_FILE = "file"

POINTER_MODES = (MODE_AUTO, MODE_SYMLINK, MODE_FILE)

# Longest id plus slack; anything bigger is not a pointer file.
_MAX_POINTER_BYTES = 64

_MAX_TYPE_SWAPS = 16

_O_NOFOLLOW = getattr(os, "O_NOFOLLOW", 0)


def _temp_path(directory: Path) -> Path:
    return directory / f".{POINTER_NAME}.{uuid.uuid4().hex}.tmp"


def _write_symlink(directory: Path, version_id: str) -> None:
    tmp = _temp_path(directory)
    os.symlink(version_id, tmp)
    try:
        os.replace(tmp, directory / POINTER_NAME)
    except OSError:
        _discard(tmp)
        raise


def _write_file(directory: Path, version_id: str, fsync: bool) -> None:
    tmp = _temp_path(directory)
    try:
        with open(tmp, "x", encoding="utf-8") as f:
            f.write(version_id)
            f.flush()
            if fsync:
                os.fsync(f.fileno())
        os.replace(tmp, directory / POINTER_NAME)
    except OSError:
        _discard(tmp)
        raise


def _discard(path: Path) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temp pointer %s: %s", path, e)


def write_pointer(
    directory: Path,
    version_id: str,
    mode: str = MODE_AUTO,
    fsync: bool = True,
) -> str:
    """
    Atomically point ``directory/latest`` at *version_id*.

    ``auto`` prefers a symlink and falls back to a pointer file when the
    platform refuses to create one. Returns the mode actually used.
    Raises OSError on filesystem failure.
    """
    if not is_version_id(version_id):
        raise ValueError(f"Not a version id: {version_id!r}")

    if mode == MODE_FILE:
        _write_file(directory, version_id, fsync)
        return MODE_FILE

    try:
        _write_symlink(directory, version_id)
        return MODE_SYMLINK
    except (NotImplementedError, OSError) as e:
        if mode == MODE_SYMLINK:
            raise
        logger.debug("Symlink pointer unavailable in %s (%s); using pointer file", directory, e)

    _write_file(directory, version_id, fsync)
    return MODE_FILE


def read_pointer_target(directory: Path) -> Optional[str]:
    """
    Return the raw id the pointer names, or None when there is no pointer.

    Does not check that the version exists. Raises OSError for failures other
    than absence.

    A writer may swap a symlink for a pointer file (or back) at any moment,
    so each form is read with a call that fails on the other form, and the
    read is retried when the type changed underneath it.
    """
    pointer = directory / POINTER_NAME
    for _ in range(_MAX_TYPE_SWAPS):
        try:
            return os.path.basename(os.readlink(pointer))
        except FileNotFoundError:
            return None
        except OSError as e:
            if e.errno != errno.EINVAL:
                raise

        try:
            fd = os.open(pointer, os.O_RDONLY | _O_NOFOLLOW)
        except FileNotFoundError:
            return None
        except OSError as e:
            if e.errno == errno.ELOOP:
                continue
            raise
        with os.fdopen(fd, "r", encoding="utf-8") as f:
            return f.read(_MAX_POINTER_BYTES).strip()

    raise OSError(errno.ELOOP, "Pointer kept changing type while being read", str(pointer))


def resolve_pointer(directory: Path) -> Optional[str]:
    """
    Resolve ``directory/latest`` to a version id.

    Returns None when the pointer (or the directory) does not exist.
    Raises CorruptionError when the pointer names something that is not an
    existing version file.
    """
    document = directory.name
    try:
        target = read_pointer_target(directory)
    except UnicodeDecodeError as e:
        raise CorruptionError(
            f"Pointer for '{document}' is not readable text",
            document=document,
            operation="resolve_pointer",
        ) from e
    if target is None:
        return None

    if not is_version_id(target):
        raise CorruptionError(
            f"Pointer for '{document}' names a malformed version",
            document=document,
            operation="resolve_pointer",
            target=target,
        )
    if not (directory / target).is_file():
        raise CorruptionError(
            f"Pointer for '{document}' names missing version {target}",
            document=document,
            operation="resolve_pointer",
            target=target,
        )
    return target


def pointer_resolves(directory: Path) -> bool:
    """Existence probe: True iff the pointer resolves to a version. Never raises."""
    try:
        return resolve_pointer(directory) is not None
    except (CorruptionError, OSError) as e:
        logger.debug("Pointer probe failed for %s: %s", directory, e)
        return False
