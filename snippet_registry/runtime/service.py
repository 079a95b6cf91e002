"""In-process lookup service over the compiled registry artifacts."""

from __future__ import annotations

import asyncio
import importlib
import logging
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from functools import partial
from pathlib import Path
from types import ModuleType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from ..config import RegistrySettings
from ..descriptors import build_descriptor_table
from ..highlight import Highlighter
from ..snippet import EntryMetadata, Registry, SnippetDescriptor
from ..utils.module_loader import dotted_module_name, load_module_from_path

logger = logging.getLogger("snippet_registry")


def registry_from_module(module: ModuleType) -> Registry:
    """Rebuild a :class:`Registry` from a generated data module."""

    payload = getattr(module, "REGISTRY", None)
    if payload is None:
        if not hasattr(module, "FILES"):
            raise ValueError(f"{module.__name__} is not a registry data module")
        payload = {
            "files": getattr(module, "FILES"),
            "lastGenerated": getattr(module, "LAST_GENERATED", None),
        }
        if payload["lastGenerated"] is None:
            payload.pop("lastGenerated")
    return Registry.from_payload(payload)


def load_artifact_module(path: Union[str, Path]) -> ModuleType:
    """Load a generated data module straight from disk."""
    return load_module_from_path(Path(path))


def _import(module: Union[str, ModuleType]) -> ModuleType:
    if isinstance(module, ModuleType):
        return module
    return importlib.import_module(module)


class RegistryService:
    """Read API over a compiled registry plus a lazily highlighted fallback.

    Ids found in the registry are served from it directly. Anything else is
    looked up in the descriptor table and highlighted on first request; the
    result is cached for the life of the service. Concurrent requests for the
    same uncached id share a single highlighter call.
    """

    def __init__(
        self,
        registry: Registry,
        descriptors: Optional[Mapping[str, SnippetDescriptor]] = None,
        *,
        highlighter: Optional[Highlighter] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self._registry = registry
        self._descriptors: Dict[str, SnippetDescriptor] = dict(descriptors or {})
        self._highlighter = highlighter or Highlighter()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="snippet-highlight"
        )
        self._lock = threading.Lock()
        self._cache: Dict[str, str] = {}
        self._inflight: Dict[str, Future] = {}

    @classmethod
    def from_artifacts(
        cls,
        data_module: Union[str, ModuleType],
        loader_module: Union[str, ModuleType, None] = None,
        **kwargs,
    ) -> "RegistryService":
        """Build a service from the generated modules (objects or dotted names)."""

        registry = registry_from_module(_import(data_module))
        descriptors: Dict[str, SnippetDescriptor] = {}
        if loader_module is not None:
            codes_modules = getattr(_import(loader_module), "CODES_MODULES", ())
            descriptors = build_descriptor_table(codes_modules)
        logger.info(
            "Loaded registry with %d entries and %d runtime descriptors",
            len(registry.files),
            len(descriptors),
        )
        return cls(registry, descriptors, **kwargs)

    @classmethod
    def from_settings(cls, settings: RegistrySettings, **kwargs) -> "RegistryService":
        """Import the artifacts written under ``settings.output_dir``.

        The import root is added to ``sys.path`` when missing so both the
        artifacts and the descriptor modules they reference can be imported.

        Raises:
            FileNotFoundError: If the data artifact has not been generated yet
        """

        data_path = settings.data_artifact_path
        if not data_path.is_file():
            raise FileNotFoundError(
                f"Registry artifact not found: {data_path}. Run `main.py generate` first."
            )

        import_root = str(Path(settings.import_root).resolve())
        if import_root not in sys.path:
            sys.path.insert(0, import_root)

        data_module = dotted_module_name(data_path, Path(settings.import_root))
        loader_module = None
        if settings.loader_artifact_path.is_file():
            loader_module = dotted_module_name(
                settings.loader_artifact_path, Path(settings.import_root)
            )
        else:
            logger.warning(
                "Loader artifact %s is missing; only precompiled entries are available",
                settings.loader_artifact_path,
            )

        kwargs.setdefault("highlighter", Highlighter(style=settings.style))
        return cls.from_artifacts(data_module, loader_module, **kwargs)

    @property
    def last_generated(self) -> datetime:
        return self._registry.last_generated

    def get_raw(self, snippet_id: str) -> Optional[str]:
        entry = self._registry.files.get(snippet_id)
        if entry is not None:
            return entry.raw
        descriptor = self._descriptors.get(snippet_id)
        return descriptor.code if descriptor is not None else None

    async def get_highlighted(self, snippet_id: str) -> Optional[str]:
        """Return the highlighted HTML for ``snippet_id``, or ``None`` when unknown."""

        entry = self._registry.files.get(snippet_id)
        if entry is not None:
            return entry.highlighted

        cached, future = self._lookup_or_submit(snippet_id)
        if future is None:
            return cached

        # A caller that stops waiting must not cancel the shared computation.
        return await asyncio.shield(asyncio.wrap_future(future))

    def get_metadata(self, snippet_id: str) -> Optional[EntryMetadata]:
        entry = self._registry.files.get(snippet_id)
        if entry is not None:
            return entry.metadata
        descriptor = self._descriptors.get(snippet_id)
        if descriptor is None:
            return None
        return EntryMetadata(
            title=descriptor.title,
            description=descriptor.description,
            language=descriptor.language,
            highlight_lines=list(descriptor.highlight_lines) or None,
        )

    def list_ids(self) -> List[str]:
        ids = list(self._registry.files)
        ids.extend(key for key in self._descriptors if key not in self._registry.files)
        return ids

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def _lookup_or_submit(self, snippet_id: str) -> Tuple[Optional[str], Optional[Future]]:
        with self._lock:
            cached = self._cache.get(snippet_id)
            if cached is not None:
                return cached, None
            future = self._inflight.get(snippet_id)
            if future is not None:
                return None, future
            descriptor = self._descriptors.get(snippet_id)
            if descriptor is None:
                return None, None
            future = self._executor.submit(self._highlight, descriptor)
            self._inflight[snippet_id] = future

        future.add_done_callback(partial(self._settle, snippet_id))
        return None, future

    def _highlight(self, descriptor: SnippetDescriptor) -> str:
        try:
            return self._highlighter.render(
                descriptor.code, descriptor.language, descriptor.highlight_lines
            )
        except Exception:
            logger.warning("Highlighting %s failed; serving raw code", descriptor.id, exc_info=True)
            return descriptor.code

    def _settle(self, snippet_id: str, future: Future) -> None:
        with self._lock:
            self._inflight.pop(snippet_id, None)
            if not future.cancelled() and future.exception() is None:
                self._cache[snippet_id] = future.result()


__all__ = ["RegistryService", "load_artifact_module", "registry_from_module"]
