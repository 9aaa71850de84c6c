"""
versionstore Error Hierarchy — Structured exceptions for store operations.

Every error carries the document name and operation that failed so the
caller (CLI, HTTP layer) can report it without parsing messages.

Hierarchy:
    VersionStoreError
    ├── InvalidNameError   — Document name failed validation
    ├── NotFoundError      — Version or document does not exist
    ├── StoreIOError       — Underlying filesystem failure
    ├── CorruptionError    — Pointer names a missing or malformed version
    └── ConfigError        — Invalid versionstore.yaml
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class VersionStoreError(Exception):
    """
    Base error for all versionstore failures.
    All context is serializable to JSON for the structured event log.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.document: Optional[str] = context.get("document")
        self.operation: Optional[str] = context.get("operation")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "document": self.document,
            "operation": self.operation,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("document", "operation")
            },
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.document:
            parts.append(f"document={self.document}")
        if self.operation:
            parts.append(f"operation={self.operation}")
        return " | ".join(parts)


class InvalidNameError(VersionStoreError):
    """
    Document name is empty, too long, or would escape the store root.
    Includes the rejected name and the reason.
    """

    def __init__(self, message: str, **context: Any):
        self.name: Optional[str] = context.get("name")
        self.reason: Optional[str] = context.get("reason")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["name"] = self.name
        d["reason"] = self.reason
        return d


class NotFoundError(VersionStoreError):
    """Requested version (or its document directory) does not exist."""

    def __init__(self, message: str, **context: Any):
        self.version: Optional[str] = context.get("version")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["version"] = self.version
        return d


class StoreIOError(VersionStoreError):
    """Filesystem call failed (permission denied, disk full, ...)."""

    def __init__(self, message: str, **context: Any):
        self.path: Optional[str] = context.get("path")
        self.errno: Optional[int] = context.get("errno")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["path"] = self.path
        d["errno"] = self.errno
        return d

    @classmethod
    def from_os_error(cls, exc: OSError, **context: Any) -> "StoreIOError":
        """Wrap an OSError, keeping its errno and filename."""
        context.setdefault("errno", exc.errno)
        if exc.filename is not None:
            context.setdefault("path", str(exc.filename))
        return cls(exc.strerror or str(exc), **context)


class CorruptionError(VersionStoreError):
    """The latest pointer exists but names a missing or malformed version."""

    def __init__(self, message: str, **context: Any):
        self.target: Optional[str] = context.get("target")
        super().__init__(message, **context)


class ConfigError(VersionStoreError):
    """Configuration error — invalid versionstore.yaml."""
    pass
