"""Code generation for the registry data module and the descriptor loader module."""

from __future__ import annotations

import keyword
import logging
import os
import pprint
import tempfile
from pathlib import Path
from typing import Dict, List, Sequence

from ..snippet import Registry
from ..utils.module_loader import dotted_module_name

logger = logging.getLogger("snippet_registry")

GENERATED_BANNER = "# Auto-generated by snippet_registry - DO NOT EDIT MANUALLY"
GENERATED_ON_PREFIX = "# Generated on: "


def _is_plain_import(module_name: str) -> bool:
    return all(
        part.isidentifier() and not keyword.iskeyword(part)
        for part in module_name.split(".")
    )


def render_registry_module(registry: Registry) -> str:
    """Render the registry as an importable Python module.

    Everything but the two timestamp lines depends only on ``registry.files``.
    """

    generated_on = registry.last_generated.isoformat()
    files_literal = pprint.pformat(registry.files_payload(), sort_dicts=False, width=100)
    return (
        f"{GENERATED_BANNER}\n"
        f"{GENERATED_ON_PREFIX}{generated_on}\n"
        '"""Precompiled code registry: raw and highlighted source keyed by id or path."""\n'
        "\n"
        f"LAST_GENERATED = {generated_on!r}\n"
        "\n"
        f"FILES = {files_literal}\n"
        "\n"
        'REGISTRY = {"files": FILES, "lastGenerated": LAST_GENERATED}\n'
        "\n"
        '__all__ = ["FILES", "LAST_GENERATED", "REGISTRY"]\n'
    )


def render_loader_module(
    descriptor_files: Sequence[Path],
    import_root: Path,
    generated_on: str,
) -> str:
    """Render one static import per descriptor module, preserving scan order.

    Modules whose dotted name has segments that are not identifiers (for
    example ``docs/get-started/codes.py``) are referenced through
    ``importlib.import_module`` with a literal name.
    """

    imports: List[str] = []
    aliases: List[str] = []
    needs_importlib = False
    for index, path in enumerate(descriptor_files):
        module_name = dotted_module_name(path, import_root)
        alias = f"codes_{index}"
        package, _, leaf = module_name.rpartition(".")
        if not _is_plain_import(module_name):
            needs_importlib = True
            imports.append(f"{alias} = importlib.import_module({module_name!r})")
        elif package:
            imports.append(f"from {package} import {leaf} as {alias}")
        else:
            imports.append(f"import {leaf} as {alias}")
        aliases.append(alias)

    lines = [
        GENERATED_BANNER,
        f"{GENERATED_ON_PREFIX}{generated_on}",
        '"""Static imports of every discovered descriptor module."""',
        "",
    ]
    if needs_importlib:
        lines.append("import importlib")
        lines.append("")
    if imports:
        lines.extend(imports)
        lines.append("")
    lines.append("CODES_MODULES = (")
    lines.extend(f"    {alias}," for alias in aliases)
    lines.append(")")
    lines.append("")
    lines.append('__all__ = ["CODES_MODULES"]')
    return "\n".join(lines) + "\n"


def write_artifacts(contents: Dict[Path, str]) -> None:
    """Write every artifact via a temp file and ``os.replace``.

    All temp files are written before any target is replaced, so a failure
    while writing leaves the previous artifacts untouched.
    """

    staged: List[tuple[str, Path]] = []
    try:
        for target, text in contents.items():
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
            )
            staged.append((tmp_name, target))
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                handle.write(text)
    except BaseException:
        for tmp_name, _ in staged:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
        raise

    for tmp_name, target in staged:
        os.replace(tmp_name, target)
        logger.info("Wrote %s", target)


__all__ = [
    "render_loader_module",
    "render_registry_module",
    "write_artifacts",
]
