"""Document name validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

from versionstore.engine.errors import InvalidNameError

MAX_NAME_BYTES = 255

_FORBIDDEN_CHARS = ("/", "\\", "\x00")


def validate_name(name: str, root: Optional[Path] = None) -> str:
    """
    Check that *name* is a single, safe path segment.

    Rejects empty names, separators, NUL, leading dots (which covers ``.``,
    ``..`` and hidden entries) and names longer than 255 UTF-8 bytes. When
    *root* is given, also checks that ``root / name`` resolves to a direct
    child of *root*.

    Returns the name unchanged; raises InvalidNameError otherwise.
    """
    if not isinstance(name, str) or not name:
        raise InvalidNameError("Document name must not be empty", name=name, reason="empty")

    if any(c in name for c in _FORBIDDEN_CHARS):
        raise InvalidNameError(
            f"Document name '{name}' contains a path separator",
            name=name,
            reason="separator",
        )

    if name.startswith("."):
        raise InvalidNameError(
            f"Document name '{name}' must not start with '.'",
            name=name,
            reason="leading_dot",
        )

    if name != name.strip() or not name.isprintable():
        raise InvalidNameError(
            f"Document name {name!r} contains whitespace padding or control characters",
            name=name,
            reason="unprintable",
        )

    if len(name.encode("utf-8")) > MAX_NAME_BYTES:
        raise InvalidNameError(
            f"Document name exceeds {MAX_NAME_BYTES} bytes",
            name=name,
            reason="too_long",
        )

    if root is not None:
        resolved_root = Path(root).resolve()
        if (resolved_root / name).resolve().parent != resolved_root:
            raise InvalidNameError(
                f"Document name '{name}' escapes the store root",
                name=name,
                reason="traversal",
            )

    return name


def name_from_path(url_path: str) -> str:
    """
    Derive a document name from a URL path: unquote, keep the last segment.

    ``/notes`` -> ``notes``; ``/a/b/../notes%20v2`` -> ``notes v2``.
    """
    segment = os.path.basename(unquote(url_path or "").rstrip("/"))
    return validate_name(segment)
