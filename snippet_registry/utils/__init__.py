"""Shared utility modules for the registry pipeline."""

from .file_loader import FileScanner, ScanResult
from .module_loader import dotted_module_name, load_module_from_path

__all__ = [
    "FileScanner",
    "ScanResult",
    "dotted_module_name",
    "load_module_from_path",
]
