import sys
import textwrap
from pathlib import Path

import pytest


GENERATED_PACKAGES = ("docs", "generated")


def write_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")
    return path


@pytest.fixture
def docs_tree(tmp_path):
    """A small docs tree with two descriptor modules and two example files."""
    docs = tmp_path / "docs"
    write_file(
        docs / "components" / "codes.py",
        """
        BUTTON_CODES = [
            {"id": "button-basic", "code": "const x = 1;", "language": "ts"},
            {
                "id": "button-marked",
                "code": "line1\\nline2\\nline3",
                "language": "text",
                "title": "Marked",
                "highlightLines": [2],
            },
        ]
        """,
    )
    write_file(
        docs / "editor" / "codes.py",
        """
        EDITOR_CODES = (
            {"id": "editor-setup", "code": "print('hi')", "language": "python"},
        )
        """,
    )
    write_file(docs / "examples" / "button.tsx", "export const Button = () => <button />;\n")
    write_file(docs / "examples" / "theme.css", ".button { color: red; }\n")
    write_file(docs / "README.md", "# not collected\n")
    return docs


@pytest.fixture(autouse=True)
def isolated_modules():
    """Drop generated and descriptor packages imported during a test."""
    before = set(sys.modules)
    yield
    for name in set(sys.modules) - before:
        if name.split(".")[0] in GENERATED_PACKAGES:
            sys.modules.pop(name, None)


@pytest.fixture
def write():
    return write_file
