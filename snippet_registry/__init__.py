"""Core package for the static code-snippet registry."""

from .errors import CodegenError, DuplicateIdError, RegistryError, ScanError
from .highlight import Highlighter
from .orchestration import RegistryCompiler
from .runtime import RegistryService
from .snippet import Registry, SnippetDescriptor
from .utils import FileScanner

__all__ = [
    "CodegenError",
    "DuplicateIdError",
    "FileScanner",
    "Highlighter",
    "Registry",
    "RegistryCompiler",
    "RegistryError",
    "RegistryService",
    "ScanError",
    "SnippetDescriptor",
]
