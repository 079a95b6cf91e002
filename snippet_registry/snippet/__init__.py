"""Descriptor data types and the compiled registry model."""

from .model import FileDescriptor, SnippetDescriptor
from .registry import EntryMetadata, Registry, RegistryEntry

__all__ = [
    "SnippetDescriptor",
    "FileDescriptor",
    "EntryMetadata",
    "RegistryEntry",
    "Registry",
]
