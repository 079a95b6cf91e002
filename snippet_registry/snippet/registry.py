"""Compiled registry shapes shared by the generator and the runtime service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class EntryMetadata(BaseModel):
    title: str | None = None
    description: str | None = None
    language: str
    highlight_lines: List[int] | None = Field(default=None, alias="highlightLines")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class RegistryEntry(BaseModel):
    raw: str
    highlighted: str
    metadata: EntryMetadata


class Registry(BaseModel):
    """Mapping of snippet id or example path to its compiled entry."""

    files: Dict[str, RegistryEntry] = Field(default_factory=dict)
    last_generated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="lastGenerated",
    )

    model_config = ConfigDict(populate_by_name=True)

    def files_payload(self) -> Dict[str, Any]:
        """Return ``files`` as plain data, in insertion order."""
        return {
            key: entry.model_dump(mode="json", by_alias=True, exclude_none=True)
            for key, entry in self.files.items()
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Registry":
        return cls.model_validate(payload)


__all__ = ["EntryMetadata", "RegistryEntry", "Registry"]
