import sys
import types

import pytest
from pydantic import ValidationError

from snippet_registry.descriptors.loader import (
    DescriptorLoader,
    build_descriptor_table,
    descriptors_from_module,
    exported_bindings,
    validate_descriptor,
)
from snippet_registry.exception_handler import ErrorHandler
from snippet_registry.snippet import SnippetDescriptor


def _module(name="fake_codes", **attrs):
    module = types.ModuleType(name)
    for key, value in attrs.items():
        setattr(module, key, value)
    return module


class _DescriptorLike:
    def __init__(self, **fields):
        self.__dict__.update(fields)


def test_exported_bindings_prefers_dunder_all():
    module = _module(
        PUBLIC=[1],
        HIDDEN=[2],
        __all__=["PUBLIC", "MISSING"],
    )

    assert list(exported_bindings(module)) == [("PUBLIC", [1])]


def test_exported_bindings_skips_private_and_callables():
    module = _module(CODES=[], _PRIVATE=[], helper=lambda: None, Model=SnippetDescriptor, os=types)

    assert [name for name, _ in exported_bindings(module)] == ["CODES"]


def test_validate_descriptor_accepts_dicts_objects_and_models():
    as_dict = validate_descriptor({"id": "a", "code": "x", "language": "ts"})
    as_object = validate_descriptor(_DescriptorLike(id="b", code="y", language="ts", title=None))
    as_model = SnippetDescriptor(id="c", code="z", language="ts")

    assert as_dict.id == "a"
    assert as_object.id == "b"
    assert validate_descriptor(as_model) is as_model


def test_highlight_lines_are_sorted_and_deduplicated():
    descriptor = validate_descriptor(
        {"id": "a", "code": "x", "language": "ts", "highlightLines": [3, 1, 3]}
    )

    assert descriptor.highlight_lines == (1, 3)


@pytest.mark.parametrize(
    "payload",
    [
        {"code": "x", "language": "ts"},
        {"id": "a", "code": "", "language": "ts"},
        {"id": "a", "code": "x", "language": 3},
        {"id": "a", "code": "x", "language": "ts", "highlightLines": "2"},
        {"id": "a", "code": "x", "language": "ts", "highlightLines": [0]},
    ],
)
def test_invalid_descriptors_are_rejected(payload):
    with pytest.raises(ValidationError):
        validate_descriptor(payload)


def test_descriptors_from_module_flattens_sequences_and_skips_invalid():
    errors = ErrorHandler()
    module = _module(
        FIRST=[
            {"id": "a", "code": "x", "language": "ts"},
            {"id": "broken", "language": "ts"},
        ],
        SECOND=({"id": "b", "code": "y", "language": "css"},),
        NOT_A_LIST={"id": "c", "code": "z", "language": "ts"},
        VERSION="1.0",
    )

    descriptors = descriptors_from_module(module, source="docs/codes.py", errors=errors)

    assert [d.id for d in descriptors] == ["a", "b"]
    assert len(errors.errors) == 1
    context = errors.errors[0]["context"]
    assert context["file_path"] == "docs/codes.py"
    assert context["export"] == "FIRST"
    assert context["index"] == 1
    assert context["id"] == "broken"


def test_build_descriptor_table_last_write_wins():
    first = _module("first", CODES=[{"id": "dup", "code": "one", "language": "ts"}])
    second = _module("second", CODES=[{"id": "dup", "code": "two", "language": "ts"}])

    table = build_descriptor_table([first, second])

    assert table["dup"].code == "two"


def test_loader_reads_module_from_disk(tmp_path, write):
    path = write(
        tmp_path / "codes.py",
        """
        from dataclasses import dataclass


        @dataclass
        class Example:
            id: str
            code: str
            language: str


        CODES = [Example("dc", "let a = 1;", "ts")]
        """,
    )

    descriptors = DescriptorLoader().load(path)

    assert [d.id for d in descriptors] == ["dc"]


def test_loader_records_import_failures(tmp_path, write):
    broken = write(tmp_path / "broken" / "codes.py", "raise RuntimeError('boom')\n")
    good = write(
        tmp_path / "good" / "codes.py",
        'CODES = [{"id": "ok", "code": "x", "language": "ts"}]\n',
    )
    errors = ErrorHandler()
    loader = DescriptorLoader(errors)

    descriptors = loader.load_all([broken, good])

    assert [d.id for d in descriptors] == ["ok"]
    assert len(errors.errors) == 1
    assert errors.errors[0]["type"] == "RuntimeError"
    assert errors.errors[0]["context"]["operation"] == "import"


def test_loader_resolves_relative_imports_below_import_root(tmp_path, write):
    write(tmp_path / "docs" / "__init__.py", "")
    write(tmp_path / "docs" / "shared.py", 'LANGUAGE = "ts"\n')
    path = write(
        tmp_path / "docs" / "codes.py",
        """
        from .shared import LANGUAGE

        CODES = [{"id": "rel", "code": "x", "language": LANGUAGE}]
        """,
    )
    errors = ErrorHandler()

    descriptors = DescriptorLoader(errors).load(path, import_root=tmp_path)

    assert [(d.id, d.language) for d in descriptors] == [("rel", "ts")]
    assert errors.errors == []
    assert "docs.codes" not in sys.modules
    assert str(tmp_path) not in sys.path
