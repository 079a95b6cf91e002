"""Descriptor module loading and validation."""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Iterable, Iterator, List, Tuple

from pydantic import ValidationError

from ..errors import CodegenError
from ..exception_handler import ErrorHandler
from ..snippet import SnippetDescriptor
from ..utils.module_loader import dotted_module_name, load_module_from_path

logger = logging.getLogger("snippet_registry")


def exported_bindings(module: ModuleType) -> Iterator[Tuple[str, Any]]:
    """Yield ``(name, value)`` for every exported binding of ``module``.

    ``__all__`` wins when present; otherwise every public attribute is used
    in definition order. Modules, classes and callables are never exports of
    interest.
    """

    names = getattr(module, "__all__", None)
    if names is None:
        names = [name for name in vars(module) if not name.startswith("_")]

    for name in names:
        if not hasattr(module, name):
            continue
        value = getattr(module, name)
        if inspect.ismodule(value) or inspect.isclass(value) or callable(value):
            continue
        yield name, value


def _descriptor_id(element: Any) -> str | None:
    if isinstance(element, dict):
        candidate = element.get("id")
    else:
        candidate = getattr(element, "id", None)
    return candidate if isinstance(candidate, str) and candidate else None


def validate_descriptor(element: Any) -> SnippetDescriptor:
    if isinstance(element, SnippetDescriptor):
        return element
    if isinstance(element, dict):
        return SnippetDescriptor.model_validate(element)
    return SnippetDescriptor.model_validate(element, from_attributes=True)


def descriptors_from_module(
    module: ModuleType,
    *,
    source: str | None = None,
    errors: ErrorHandler | None = None,
) -> List[SnippetDescriptor]:
    """Flatten every list/tuple export of ``module`` into validated descriptors."""

    origin = source or getattr(module, "__file__", None) or module.__name__
    collected: List[SnippetDescriptor] = []

    for export_name, value in exported_bindings(module):
        if not isinstance(value, (list, tuple)):
            continue
        for index, element in enumerate(value):
            try:
                collected.append(validate_descriptor(element))
            except ValidationError as exc:
                descriptor_id = _descriptor_id(element)
                if errors is not None:
                    errors.collect_descriptor_error(exc, origin, export_name, index, descriptor_id)
                else:
                    logger.warning(
                        "Skipping invalid descriptor %s[%d] (id=%s) in %s: %s",
                        export_name,
                        index,
                        descriptor_id,
                        origin,
                        exc,
                    )

    return collected


def build_descriptor_table(
    modules: Iterable[ModuleType],
    *,
    errors: ErrorHandler | None = None,
) -> Dict[str, SnippetDescriptor]:
    """Index descriptors from already-imported modules by id; last write wins."""

    table: Dict[str, SnippetDescriptor] = {}
    for module in modules:
        for descriptor in descriptors_from_module(module, errors=errors):
            if descriptor.id in table:
                logger.debug("Descriptor id %s redefined in %s", descriptor.id, module.__name__)
            table[descriptor.id] = descriptor
    return table


class DescriptorLoader:
    """Load descriptor modules from disk, absorbing per-module failures."""

    def __init__(self, errors: ErrorHandler | None = None) -> None:
        self.errors = errors or ErrorHandler()

    def load(
        self,
        path: Path | str,
        *,
        import_root: Path | str | None = None,
    ) -> List[SnippetDescriptor]:
        """Execute one descriptor module and return its valid descriptors.

        Below ``import_root`` the module runs under the dotted name the loader
        artifact imports it by, so its relative imports resolve the same way
        at build time and at runtime.
        """
        module_path = Path(path)
        try:
            module_name = None
            if import_root is not None:
                module_name = self._dotted_name(module_path, Path(import_root))
            module = load_module_from_path(
                module_path,
                module_name,
                search_root=import_root if module_name else None,
            )
        except Exception as exc:
            self.errors.collect_module_error(exc, str(module_path), "import")
            return []

        descriptors = descriptors_from_module(module, source=str(module_path), errors=self.errors)
        logger.debug("Loaded %d descriptors from %s", len(descriptors), module_path)
        return descriptors

    @staticmethod
    def _dotted_name(module_path: Path, import_root: Path) -> str | None:
        try:
            return dotted_module_name(module_path, import_root)
        except CodegenError:
            return None

    def load_all(
        self,
        paths: Iterable[Path | str],
        *,
        import_root: Path | str | None = None,
    ) -> List[SnippetDescriptor]:
        collected: List[SnippetDescriptor] = []
        for path in paths:
            collected.extend(self.load(path, import_root=import_root))
        return collected


__all__ = [
    "DescriptorLoader",
    "build_descriptor_table",
    "descriptors_from_module",
    "exported_bindings",
    "validate_descriptor",
]
