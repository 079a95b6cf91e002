from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from snippet_registry.config import RegistrySettings
from snippet_registry.exception_handler import setup_logging
from snippet_registry.runtime import RegistryService


logger = logging.getLogger("snippet_registry")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Look up snippets in the generated code registry",
    )
    parser.add_argument(
        "snippet_id",
        nargs="?",
        help="Snippet id or example file path to print",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the raw source instead of the highlighted HTML",
    )
    parser.add_argument(
        "--list",
        dest="list_ids",
        action="store_true",
        help="List every known id and exit",
    )

    args = parser.parse_args(argv)
    if not args.list_ids and not args.snippet_id:
        parser.error("a snippet id is required unless --list is given")
    return args


def format_ids(ids: Sequence[str]) -> str:
    if not ids:
        return "Registered ids (0)\nNo entries found."
    lines = [f"Registered ids ({len(ids)})"]
    lines.extend(f"  {snippet_id}" for snippet_id in ids)
    return "\n".join(lines)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    settings = RegistrySettings.from_env()
    setup_logging("WARNING" if settings.log_level.upper() == "INFO" else settings.log_level)

    try:
        service = RegistryService.from_settings(settings)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception:  # pragma: no cover
        logger.exception("Failed to load the registry artifacts")
        print("❌ Could not load the registry. See log for details.", file=sys.stderr)
        return 1

    try:
        if args.list_ids:
            print(format_ids(service.list_ids()))
            return 0

        if args.raw:
            text = service.get_raw(args.snippet_id)
        else:
            text = asyncio.run(service.get_highlighted(args.snippet_id))

        if text is None:
            print(f"Unknown snippet id: {args.snippet_id}", file=sys.stderr)
            return 1

        print(text)
        return 0
    finally:
        service.close()


if __name__ == "__main__":
    sys.exit(main())
