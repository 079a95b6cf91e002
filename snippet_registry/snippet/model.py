from __future__ import annotations

from typing import Annotated, Any, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

PositiveLine = Annotated[StrictInt, Field(gt=0)]


class SnippetDescriptor(BaseModel):
    """An author-declared unit of example code registered under ``id``."""

    id: StrictStr = Field(..., min_length=1)
    code: StrictStr = Field(..., min_length=1)
    language: StrictStr = Field(..., min_length=1)
    title: StrictStr | None = None
    description: StrictStr | None = None
    highlight_lines: Tuple[PositiveLine, ...] = Field(default=(), alias="highlightLines")

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @field_validator("highlight_lines", mode="before")
    @classmethod
    def _coerce_missing_lines(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, bytes)):
            raise ValueError("highlightLines must be a sequence of line numbers")
        return value

    @field_validator("highlight_lines")
    @classmethod
    def _normalize_lines(cls, value: Tuple[int, ...]) -> Tuple[int, ...]:
        return tuple(sorted(set(value)))


class FileDescriptor(BaseModel):
    """An example source file discovered on disk."""

    relative_path: str
    language: str
    path: str

    model_config = ConfigDict(frozen=True)


__all__ = ["SnippetDescriptor", "FileDescriptor"]
