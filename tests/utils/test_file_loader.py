import os
from pathlib import Path

import pytest

from snippet_registry.errors import ScanError
from snippet_registry.utils.file_loader import FileScanner


def test_scan_classifies_descriptors_and_examples(tmp_path, write):
    docs = tmp_path / "docs"
    write(docs / "examples" / "button.tsx", "export const Button = 1;\n")
    write(docs / "components" / "codes.py", "CODES = []\n")
    write(docs / "notes.md", "# ignored\n")

    result = FileScanner().scan([docs])

    assert result.descriptor_files == [(docs / "components" / "codes.py").absolute()]
    assert len(result.example_files) == 1
    example = result.example_files[0]
    assert example.relative_path == "examples/button.tsx"
    assert example.language == "tsx"
    assert example.path == str((docs / "examples" / "button.tsx").absolute())


def test_scan_missing_root_is_fatal(tmp_path):
    with pytest.raises(ScanError):
        FileScanner().scan([tmp_path / "missing"])


def test_scan_root_must_be_directory(tmp_path, write):
    path = write(tmp_path / "file.ts", "let a = 1;\n")

    with pytest.raises(ScanError):
        FileScanner().scan([path])


def test_scan_order_is_deterministic(docs_tree):
    scanner = FileScanner()

    first = scanner.scan([docs_tree])
    second = scanner.scan([docs_tree])

    assert first == second
    assert [p.parent.name for p in first.descriptor_files] == ["components", "editor"]
    assert [f.relative_path for f in first.example_files] == [
        "examples/button.tsx",
        "examples/theme.css",
    ]


def test_scan_skips_excluded_directories(tmp_path, write):
    docs = tmp_path / "docs"
    write(docs / "node_modules" / "pkg" / "index.js", "module.exports = 1;\n")
    write(docs / "generated" / "code_registry.py", "FILES = {}\n")
    write(docs / "src" / "main.ts", "let a = 1;\n")

    result = FileScanner(exclude_paths=[docs / "generated"]).scan([docs])

    assert [f.relative_path for f in result.example_files] == ["src/main.ts"]


def test_require_dir_limits_example_files(tmp_path, write):
    docs = tmp_path / "docs"
    write(docs / "button" / "examples" / "basic.tsx", "export default 1;\n")
    write(docs / "button" / "page.tsx", "export default 2;\n")
    write(docs / "button" / "codes.py", "CODES = []\n")

    result = FileScanner(require_dir="examples").scan([docs])

    assert [f.relative_path for f in result.example_files] == ["button/examples/basic.tsx"]
    assert len(result.descriptor_files) == 1


def test_custom_descriptor_filename(tmp_path, write):
    docs = tmp_path / "docs"
    write(docs / "snippets.py", "CODES = []\n")
    write(docs / "codes.py", "print('example')\n")

    result = FileScanner("snippets.py").scan([docs])

    assert result.descriptor_files == [(docs / "snippets.py").absolute()]
    assert [f.relative_path for f in result.example_files] == ["codes.py"]


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_symlink_cycle_is_fatal(tmp_path, write):
    docs = tmp_path / "docs"
    write(docs / "a" / "main.ts", "let a = 1;\n")
    try:
        os.symlink(docs, docs / "a" / "loop", target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")

    with pytest.raises(ScanError, match="cycle"):
        FileScanner().scan([docs])


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_shared_directory_is_scanned_once(tmp_path, write):
    docs = tmp_path / "docs"
    write(docs / "a" / "shared" / "main.ts", "let a = 1;\n")
    (docs / "b").mkdir()
    try:
        os.symlink(docs / "a" / "shared", docs / "b" / "link", target_is_directory=True)
    except OSError:
        pytest.skip("cannot create symlinks here")

    result = FileScanner().scan([docs])

    assert [f.relative_path for f in result.example_files] == ["a/shared/main.ts"]


def test_language_for_uses_extension_table():
    scanner = FileScanner(extension_languages={".tsx": "tsx"})

    assert scanner.language_for(Path("Card.TSX")) == "tsx"
    assert scanner.language_for(Path("card.ts")) is None
