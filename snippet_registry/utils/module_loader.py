"""Execute a Python source file as a module without leaving it imported."""

from __future__ import annotations

import hashlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType

from ..errors import CodegenError


def private_module_name(path: Path, prefix: str = "_snippet_registry_") -> str:
    digest = hashlib.sha1(str(path.resolve()).encode("utf-8")).hexdigest()[:12]
    return f"{prefix}{path.stem}_{digest}"


def dotted_module_name(path: Path, import_root: Path) -> str:
    """Return the dotted import name of ``path`` relative to ``import_root``.

    Segments need not be identifiers (``docs.get-started.codes`` is fine for
    ``importlib.import_module``), but they must not contain dots.

    Raises:
        CodegenError: If the file lies outside ``import_root`` or a segment
            cannot be addressed by a dotted name
    """

    resolved = Path(path).resolve()
    root = Path(import_root).resolve()
    try:
        relative = resolved.relative_to(root)
    except ValueError as exc:
        raise CodegenError(f"{path} is not below import root {import_root}") from exc

    parts = list(relative.with_suffix("").parts)
    if not parts:
        raise CodegenError(f"Cannot derive a module name for {path}")
    for part in parts:
        if "." in part:
            raise CodegenError(
                f"{path} is not importable: {part!r} cannot appear in a dotted module name"
            )
    return ".".join(parts)


def load_module_from_path(
    path: Path | str,
    module_name: str | None = None,
    *,
    search_root: Path | str | None = None,
) -> ModuleType:
    """Load ``path`` as a fresh module object.

    The module is registered in ``sys.modules`` only while its body runs so
    dataclasses and pydantic models defined inside can resolve their module.
    With a dotted ``module_name`` and a ``search_root`` on ``sys.path`` the
    module also resolves relative and absolute imports of its siblings.
    Any exception raised by the module body propagates to the caller.
    """

    file_path = Path(path)
    if not file_path.is_file():
        raise FileNotFoundError(f"Module file not found: {file_path}")

    name = module_name or private_module_name(file_path)
    spec = importlib.util.spec_from_file_location(name, str(file_path))
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot create module spec for {file_path}")

    root = str(Path(search_root).resolve()) if search_root is not None else None
    added_root = root is not None and root not in sys.path
    if added_root:
        sys.path.insert(0, root)

    module = importlib.util.module_from_spec(spec)
    previous = sys.modules.get(name)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    finally:
        if previous is None:
            sys.modules.pop(name, None)
        else:
            sys.modules[name] = previous
        if added_root:
            try:
                sys.path.remove(root)
            except ValueError:
                pass
    return module


__all__ = ["dotted_module_name", "load_module_from_path", "private_module_name"]
