"""
versionstore Document Models — Pydantic definitions.

Version: one immutable, timestamp-identified save of a document.
DocumentSummary: catalog row (name + current version).

Physical storage: {store_root}/{document}/{version_id}
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from versionstore.documents.ids import is_version_id, parse_version_id


class Version(BaseModel):
    """A saved version. The id doubles as the save timestamp and sort key."""

    document: str = Field(description="Owning document name")
    id: str = Field(description="Sortable UTC timestamp id")
    content: str = Field(default="", description="Version text")

    model_config = {"frozen": True}

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not is_version_id(v):
            raise ValueError(f"not a version id: '{v}'")
        return v

    @property
    def saved_at(self) -> datetime:
        return parse_version_id(self.id)

    @property
    def size_bytes(self) -> int:
        return len(self.content.encode("utf-8"))


class DocumentSummary(BaseModel):
    """Document as listed by the catalog."""

    name: str
    current_version: Optional[str] = None
    version_count: int = Field(default=0, ge=0)
