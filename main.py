import argparse
import logging
import sys
from typing import Optional

from tqdm import tqdm

from snippet_registry.config import RegistrySettings
from snippet_registry.errors import RegistryError
from snippet_registry.exception_handler import setup_logging
from snippet_registry.orchestration import RegistryCompiler


logger = logging.getLogger("snippet_registry")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compile code snippets and example files into a static registry"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser(
        "generate",
        help="Scan the roots and write the registry and loader artifacts",
    )
    generate.add_argument(
        "roots",
        nargs="*",
        help="Directories to scan (default: CODE_REGISTRY_ROOTS or ./docs)",
    )
    return parser


def generate(settings: RegistrySettings) -> int:
    compiler = RegistryCompiler.from_settings(settings)
    pbar: Optional[tqdm] = None

    def on_entry_complete(key: str, index: int, total: int) -> None:
        nonlocal pbar
        if pbar is None:
            pbar = tqdm(total=total, desc="Highlighting", unit="entry", leave=True)
        pbar.update(1)
        pbar.set_postfix(entry=key.split("/")[-1][:30], refresh=False)

    try:
        result = compiler.generate(
            settings.roots,
            settings.output_dir,
            import_root=settings.import_root,
            data_module_name=settings.data_module_name,
            loader_module_name=settings.loader_module_name,
            on_entry_complete=on_entry_complete,
        )
    except KeyboardInterrupt:
        print("\n⚠️ Generation interrupted", file=sys.stderr)
        return 1
    except RegistryError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except Exception:
        logger.exception("Fatal error during registry generation")
        print("\n❌ Fatal error occurred. See log for details.", file=sys.stderr)
        return 1
    finally:
        if pbar is not None:
            pbar.close()

    stats = compiler.last_run_stats or {}
    tqdm.write(f"✅ Registry written to: {result.data_path}")
    tqdm.write(f"✅ Loader written to: {result.loader_path}")
    tqdm.write(
        f"📈 Entries: {stats.get('entries', 0)} | 🧩 Snippets: {stats.get('snippets', 0)}"
        f" | 📄 Files: {stats.get('example_files', 0)} | ⏱️ Time: {stats.get('duration', 0.0):.1f}s"
    )

    report = compiler.errors.format_error_report()
    if report:
        tqdm.write(report)

    return 0


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = RegistrySettings.from_env()
    setup_logging(settings.log_level)

    if args.roots:
        settings.roots = tuple(args.roots)

    return generate(settings)


if __name__ == "__main__":
    sys.exit(main())
