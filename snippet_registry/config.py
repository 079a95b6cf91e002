"""Runtime configuration for the registry generator and lookup service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger("snippet_registry")

DEFAULT_DESCRIPTOR_FILENAME = "codes.py"
DEFAULT_DATA_MODULE = "code_registry"
DEFAULT_LOADER_MODULE = "codes_loader"
DEFAULT_STYLE = "github-dark"


@dataclass(slots=True)
class RegistrySettings:
    """Where to scan, where to write, and how to highlight."""

    roots: tuple[str, ...] = ("docs",)
    output_dir: str = "generated"
    import_root: str = "."
    descriptor_filename: str = DEFAULT_DESCRIPTOR_FILENAME
    examples_dir: str | None = None
    style: str = DEFAULT_STYLE
    max_concurrency: int | None = None
    strict_ids: bool = False
    log_level: str = "INFO"
    data_module_name: str = DEFAULT_DATA_MODULE
    loader_module_name: str = DEFAULT_LOADER_MODULE

    @classmethod
    def from_env(cls) -> "RegistrySettings":
        def _int_env(name: str) -> int | None:
            raw = os.getenv(name)
            if not raw:
                return None
            try:
                value = int(raw)
            except ValueError:
                logger.warning("Invalid integer for %s: %s", name, raw)
                return None
            if value <= 0:
                logger.warning("Ignoring non-positive %s: %s", name, raw)
                return None
            return value

        def _bool_env(name: str, default: bool) -> bool:
            raw = os.getenv(name)
            if raw is None or not raw.strip():
                return default
            return raw.strip().lower() in {"1", "true", "yes", "on"}

        raw_roots = os.getenv("CODE_REGISTRY_ROOTS", "")
        roots = tuple(part for part in raw_roots.split(os.pathsep) if part.strip())

        return cls(
            roots=roots or ("docs",),
            output_dir=os.getenv("CODE_REGISTRY_OUTPUT_DIR", "generated"),
            import_root=os.getenv("CODE_REGISTRY_IMPORT_ROOT", "."),
            descriptor_filename=os.getenv(
                "CODE_REGISTRY_DESCRIPTOR_FILENAME", DEFAULT_DESCRIPTOR_FILENAME
            ),
            examples_dir=os.getenv("CODE_REGISTRY_EXAMPLES_DIR") or None,
            style=os.getenv("CODE_REGISTRY_STYLE", DEFAULT_STYLE),
            max_concurrency=_int_env("CODE_REGISTRY_MAX_CONCURRENCY"),
            strict_ids=_bool_env("CODE_REGISTRY_STRICT_IDS", False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def data_artifact_path(self) -> Path:
        return Path(self.output_dir) / f"{self.data_module_name}.py"

    @property
    def loader_artifact_path(self) -> Path:
        return Path(self.output_dir) / f"{self.loader_module_name}.py"


__all__ = [
    "RegistrySettings",
    "DEFAULT_DESCRIPTOR_FILENAME",
    "DEFAULT_DATA_MODULE",
    "DEFAULT_LOADER_MODULE",
    "DEFAULT_STYLE",
]
