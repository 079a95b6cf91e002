"""Exception types raised by the registry pipeline."""

from __future__ import annotations


class RegistryError(Exception):
    """Base class for fatal registry build errors."""


class ScanError(RegistryError):
    """A scan root is missing, unreadable, or contains a directory cycle."""


class DuplicateIdError(RegistryError):
    """Two producers emitted the same registry key while strict ids are enabled."""

    def __init__(self, key: str, first: str, second: str) -> None:
        super().__init__(f"Duplicate registry key {key!r} produced by {first} and {second}")
        self.key = key
        self.first = first
        self.second = second


class CodegenError(RegistryError):
    """A generated artifact cannot be expressed (e.g. non-importable module path)."""


__all__ = ["RegistryError", "ScanError", "DuplicateIdError", "CodegenError"]
