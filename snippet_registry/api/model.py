"""Pydantic response models for the snippet lookup API."""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..snippet import EntryMetadata


class SnippetListResponse(BaseModel):
    ids: List[str]
    count: int
    last_generated: datetime = Field(serialization_alias="lastGenerated")

    model_config = ConfigDict(populate_by_name=True)


class SnippetDetailResponse(BaseModel):
    id: str
    raw: str
    highlighted: str
    metadata: EntryMetadata


__all__ = ["SnippetDetailResponse", "SnippetListResponse"]
