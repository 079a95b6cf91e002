import logging
import os
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ..config import DEFAULT_DESCRIPTOR_FILENAME
from ..errors import ScanError
from ..snippet import FileDescriptor


class ScanResult(NamedTuple):
    """Ordered output of a scan: descriptor modules and example files."""
    descriptor_files: List[Path]
    example_files: List[FileDescriptor]


class FileScanner:
    """Deterministic discovery of descriptor modules and example files."""

    logger = logging.getLogger("snippet_registry")

    # Extension -> highlighter language tag
    EXTENSION_LANGUAGES: Dict[str, str] = {
        ".py": "python", ".pyi": "python",
        ".js": "javascript", ".mjs": "javascript", ".cjs": "javascript",
        ".jsx": "jsx", ".ts": "typescript", ".tsx": "tsx",
        ".css": "css", ".scss": "scss", ".html": "html",
        ".sh": "bash", ".bash": "bash",
        ".json": "json", ".toml": "toml", ".yaml": "yaml", ".yml": "yaml",
        ".sql": "sql", ".rs": "rust", ".go": "go",
    }

    # Directories to exclude from search
    EXCLUDE_DIRS = {
        '__pycache__', '.venv', 'venv', 'node_modules', 'target', 'dist',
        'build', '.git', '.svn', '.hg', 'coverage', '.pytest_cache',
        '.tox', 'htmlcov', '.mypy_cache', '.ruff_cache', '.next',
    }

    def __init__(
        self,
        descriptor_filename: str = DEFAULT_DESCRIPTOR_FILENAME,
        *,
        extension_languages: Optional[Dict[str, str]] = None,
        exclude_paths: Iterable[os.PathLike] = (),
        require_dir: Optional[str] = None,
    ):
        """Initialize the scanner.

        Args:
            descriptor_filename: Base name that marks a descriptor module
            extension_languages: Override of the extension -> language table
            exclude_paths: Directories pruned from every traversal (e.g. the
                artifact output directory)
            require_dir: When set, example files are only collected below a
                directory with this name
        """
        self.descriptor_filename = descriptor_filename
        self.extension_languages = dict(extension_languages or self.EXTENSION_LANGUAGES)
        self.exclude_paths: FrozenSet[Path] = frozenset(
            Path(p).resolve() for p in exclude_paths
        )
        self.require_dir = require_dir

    def language_for(self, path: Path) -> Optional[str]:
        """Return the language tag for an allow-listed extension, else None."""
        return self.extension_languages.get(path.suffix.lower())

    def scan(self, roots: Sequence[os.PathLike]) -> ScanResult:
        """Walk every root depth-first and classify the files found.

        Raises:
            ScanError: If a root is missing or unreadable, or a directory
                cycle is found below it
        """
        descriptor_files: List[Path] = []
        example_files: List[FileDescriptor] = []

        for root in roots:
            root_path = Path(root)
            if not root_path.exists():
                raise ScanError(f"Scan root not found: {root}")
            if not root_path.is_dir():
                raise ScanError(f"Scan root is not a directory: {root}")

            root_descriptors, root_examples = self._scan_root(root_path)
            self.logger.info(
                "Scanned %s: %d descriptor modules, %d example files",
                root_path,
                len(root_descriptors),
                len(root_examples),
            )
            descriptor_files.extend(root_descriptors)
            example_files.extend(root_examples)

        return ScanResult(descriptor_files, example_files)

    def _scan_root(self, root: Path) -> Tuple[List[Path], List[FileDescriptor]]:
        descriptors: List[Path] = []
        examples: List[FileDescriptor] = []
        visited = set()

        def walk(dir_path: Path, relative: Path, ancestors: Tuple[Tuple[int, int], ...]) -> None:
            try:
                stat_info = dir_path.stat()
            except OSError as exc:
                raise ScanError(f"Cannot read directory {dir_path}: {exc}") from exc

            identity = (stat_info.st_dev, stat_info.st_ino)
            if identity in ancestors:
                raise ScanError(f"Directory cycle detected at {dir_path}")
            if identity in visited:
                self.logger.debug("Skipping already scanned directory %s", dir_path)
                return
            visited.add(identity)

            try:
                with os.scandir(dir_path) as iterator:
                    entries = sorted(iterator, key=lambda entry: entry.name)
            except OSError as exc:
                raise ScanError(f"Cannot list directory {dir_path}: {exc}") from exc

            for entry in entries:
                entry_path = Path(entry.path)
                entry_relative = relative / entry.name
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    is_dir = False

                if is_dir:
                    if entry.name in self.EXCLUDE_DIRS or self._is_excluded(entry_path):
                        continue
                    walk(entry_path, entry_relative, ancestors + (identity,))
                elif entry.is_file():
                    self._classify(entry_path, entry_relative, descriptors, examples)

        walk(root, Path(), ())
        return descriptors, examples

    def _classify(
        self,
        file_path: Path,
        relative_path: Path,
        descriptors: List[Path],
        examples: List[FileDescriptor],
    ) -> None:
        if file_path.name == self.descriptor_filename:
            descriptors.append(file_path.absolute())
            return

        language = self.language_for(file_path)
        if language is None:
            return
        if self.require_dir and self.require_dir not in relative_path.parts[:-1]:
            return

        examples.append(FileDescriptor(
            relative_path=relative_path.as_posix(),
            language=language,
            path=str(file_path.absolute()),
        ))

    def _is_excluded(self, dir_path: Path) -> bool:
        if not self.exclude_paths:
            return False
        return dir_path.resolve() in self.exclude_paths


__all__ = ["FileScanner", "ScanResult"]
