import asyncio
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Coroutine, Dict, List, NamedTuple, Optional, Sequence, Tuple, TypeVar, Union

from ..config import DEFAULT_DATA_MODULE, DEFAULT_LOADER_MODULE, RegistrySettings
from ..descriptors import DescriptorLoader
from ..errors import DuplicateIdError
from ..exception_handler import ErrorHandler
from ..highlight import Highlighter
from ..snippet import EntryMetadata, FileDescriptor, Registry, RegistryEntry, SnippetDescriptor
from ..utils.file_loader import FileScanner, ScanResult
from .emitter import render_loader_module, render_registry_module, write_artifacts


logger = logging.getLogger("snippet_registry")

T = TypeVar("T")


class PendingEntry(NamedTuple):
    """A registry entry waiting to be highlighted."""
    key: str
    code: str
    language: str
    marked_lines: Tuple[int, ...]
    metadata: EntryMetadata
    origin: str


@dataclass(slots=True)
class GenerationResult:
    registry: Registry
    data_path: Path
    loader_path: Path
    descriptor_modules: int


class RegistryCompiler:
    """Orchestrates scan, descriptor loading, highlighting and artifact output."""

    def __init__(
        self,
        *,
        scanner: Optional[FileScanner] = None,
        highlighter: Optional[Highlighter] = None,
        max_concurrency: Optional[int] = None,
        strict_ids: bool = False,
        errors: Optional[ErrorHandler] = None,
    ) -> None:
        self.scanner = scanner or FileScanner()
        self.highlighter = highlighter or Highlighter()
        self.max_concurrency = max_concurrency or os.cpu_count() or 1
        self.strict_ids = strict_ids
        self.errors = errors or ErrorHandler()
        self.loader = DescriptorLoader(self.errors)
        self._last_run_stats: Optional[Dict[str, Union[int, float]]] = None

    @classmethod
    def from_settings(cls, settings: RegistrySettings, **kwargs) -> "RegistryCompiler":
        scanner = FileScanner(
            settings.descriptor_filename,
            exclude_paths=[settings.output_dir],
            require_dir=settings.examples_dir,
        )
        return cls(
            scanner=scanner,
            highlighter=Highlighter(style=settings.style),
            max_concurrency=settings.max_concurrency,
            strict_ids=settings.strict_ids,
            **kwargs,
        )

    def compile(
        self,
        roots: Sequence[Union[str, os.PathLike]],
        *,
        import_root: Optional[Union[str, os.PathLike]] = None,
        on_entry_complete: Optional[Callable[[str, int, int], None]] = None,
    ) -> Registry:
        """Synchronous wrapper around :meth:`acompile`.

        Inside a running event loop the compilation runs on a private loop in
        a worker thread and the caller blocks until it is done.
        """
        return _run_sync(
            self.acompile(roots, import_root=import_root, on_entry_complete=on_entry_complete)
        )

    async def acompile(
        self,
        roots: Sequence[Union[str, os.PathLike]],
        *,
        import_root: Optional[Union[str, os.PathLike]] = None,
        on_entry_complete: Optional[Callable[[str, int, int], None]] = None,
    ) -> Registry:
        """Build a fresh registry from everything under ``roots``.

        Raises:
            ScanError: If scanning fails; nothing has been produced yet
            DuplicateIdError: If ``strict_ids`` is set and a key repeats
        """
        registry, _ = await self._compile(
            roots, import_root=import_root, on_entry_complete=on_entry_complete
        )
        return registry

    def generate(
        self,
        roots: Sequence[Union[str, os.PathLike]],
        output_dir: Union[str, os.PathLike],
        *,
        import_root: Union[str, os.PathLike] = ".",
        data_module_name: str = DEFAULT_DATA_MODULE,
        loader_module_name: str = DEFAULT_LOADER_MODULE,
        on_entry_complete: Optional[Callable[[str, int, int], None]] = None,
    ) -> GenerationResult:
        """Synchronous wrapper around :meth:`agenerate`."""
        return _run_sync(
            self.agenerate(
                roots,
                output_dir,
                import_root=import_root,
                data_module_name=data_module_name,
                loader_module_name=loader_module_name,
                on_entry_complete=on_entry_complete,
            )
        )

    async def agenerate(
        self,
        roots: Sequence[Union[str, os.PathLike]],
        output_dir: Union[str, os.PathLike],
        *,
        import_root: Union[str, os.PathLike] = ".",
        data_module_name: str = DEFAULT_DATA_MODULE,
        loader_module_name: str = DEFAULT_LOADER_MODULE,
        on_entry_complete: Optional[Callable[[str, int, int], None]] = None,
    ) -> GenerationResult:
        """Compile and write the data artifact and the loader artifact.

        Both artifacts are rendered in memory before either is written.

        Raises:
            CodegenError: If a descriptor module lies outside ``import_root``
        """
        registry, scan = await self._compile(
            roots, import_root=import_root, on_entry_complete=on_entry_complete
        )

        output_path = Path(output_dir)
        data_path = output_path / f"{data_module_name}.py"
        loader_path = output_path / f"{loader_module_name}.py"

        loader_text = render_loader_module(
            scan.descriptor_files,
            Path(import_root),
            registry.last_generated.isoformat(),
        )
        data_text = render_registry_module(registry)

        write_artifacts({data_path: data_text, loader_path: loader_text})

        return GenerationResult(
            registry=registry,
            data_path=data_path,
            loader_path=loader_path,
            descriptor_modules=len(scan.descriptor_files),
        )

    async def _compile(
        self,
        roots: Sequence[Union[str, os.PathLike]],
        *,
        import_root: Optional[Union[str, os.PathLike]] = None,
        on_entry_complete: Optional[Callable[[str, int, int], None]] = None,
    ) -> Tuple[Registry, ScanResult]:
        start_time = time.time()
        self.errors.clear_errors()

        scan = self.scanner.scan(roots)

        pending: List[PendingEntry] = []
        for file_descriptor in scan.example_files:
            entry = self._pending_from_file(file_descriptor)
            if entry is not None:
                pending.append(entry)

        snippet_count = 0
        for descriptor_path in scan.descriptor_files:
            for descriptor in self.loader.load(descriptor_path, import_root=import_root):
                pending.append(self._pending_from_descriptor(descriptor, str(descriptor_path)))
                snippet_count += 1

        unique = self._resolve_duplicates(pending)

        highlighted: Dict[str, str] = {}
        if unique:
            with ThreadPoolExecutor(max_workers=self.max_concurrency) as executor:
                highlighted = await self._highlight_entries(
                    unique, executor, on_entry_complete=on_entry_complete
                )

        registry = Registry(
            files={
                entry.key: RegistryEntry(
                    raw=entry.code,
                    highlighted=highlighted[entry.key],
                    metadata=entry.metadata,
                )
                for entry in unique
            },
            last_generated=datetime.now(timezone.utc),
        )

        duration = time.time() - start_time
        self._last_run_stats = {
            "descriptor_modules": len(scan.descriptor_files),
            "example_files": len(scan.example_files),
            "snippets": snippet_count,
            "entries": len(registry.files),
            "warnings": len(self.errors.errors),
            "duration": duration,
        }
        logger.info(
            "Compiled %d registry entries (%d snippets, %d example files) in %.1fs",
            len(registry.files),
            snippet_count,
            len(scan.example_files),
            duration,
        )
        if self.errors.errors:
            logger.warning("%d problems were skipped during compilation", len(self.errors.errors))

        return registry, scan

    @property
    def last_run_stats(self) -> Optional[Dict[str, Union[int, float]]]:
        """Return summary statistics for the last compilation."""
        return self._last_run_stats

    def _pending_from_file(self, file_descriptor: FileDescriptor) -> Optional[PendingEntry]:
        try:
            with open(file_descriptor.path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as exc:
            self.errors.collect_file_error(exc, file_descriptor.path, "read")
            return None

        return PendingEntry(
            key=file_descriptor.relative_path,
            code=content,
            language=file_descriptor.language,
            marked_lines=(),
            metadata=EntryMetadata(language=file_descriptor.language),
            origin=file_descriptor.path,
        )

    @staticmethod
    def _pending_from_descriptor(descriptor: SnippetDescriptor, origin: str) -> PendingEntry:
        return PendingEntry(
            key=descriptor.id,
            code=descriptor.code,
            language=descriptor.language,
            marked_lines=descriptor.highlight_lines,
            metadata=EntryMetadata(
                title=descriptor.title,
                description=descriptor.description,
                language=descriptor.language,
                highlight_lines=list(descriptor.highlight_lines) or None,
            ),
            origin=origin,
        )

    def _resolve_duplicates(self, pending: List[PendingEntry]) -> List[PendingEntry]:
        """Keep the last producer of every key, at the key's first position."""
        resolved: Dict[str, PendingEntry] = {}
        for entry in pending:
            previous = resolved.get(entry.key)
            if previous is not None:
                if self.strict_ids:
                    raise DuplicateIdError(entry.key, previous.origin, entry.origin)
                logger.warning(
                    "Registry key %s from %s overrides the one from %s",
                    entry.key,
                    entry.origin,
                    previous.origin,
                )
            resolved[entry.key] = entry
        return list(resolved.values())

    async def _highlight_entries(
        self,
        entries: List[PendingEntry],
        executor: ThreadPoolExecutor,
        *,
        on_entry_complete: Optional[Callable[[str, int, int], None]] = None,
    ) -> Dict[str, str]:
        loop = asyncio.get_running_loop()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        progress_lock = asyncio.Lock()
        processed_count = 0
        total = len(entries)

        async def highlight_with_progress(entry: PendingEntry) -> Tuple[str, str]:
            nonlocal processed_count
            async with semaphore:
                highlighted = await loop.run_in_executor(
                    executor,
                    self.highlighter.render,
                    entry.code,
                    entry.language,
                    entry.marked_lines,
                )
            async with progress_lock:
                processed_count += 1
                current_index = processed_count
            if on_entry_complete is not None:
                try:
                    on_entry_complete(entry.key, current_index, total)
                except Exception:  # pragma: no cover
                    logger.exception("on_entry_complete callback failed")
            return entry.key, highlighted

        results = await asyncio.gather(*(highlight_with_progress(entry) for entry in entries))
        return dict(results)


def _run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="registry-compile") as runner:
        return runner.submit(asyncio.run, coro).result()
