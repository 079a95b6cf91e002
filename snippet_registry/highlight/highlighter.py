"""Pygments adapter that renders code to HTML with per-line marks."""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, Iterator, Optional, Tuple

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from ..config import DEFAULT_STYLE

logger = logging.getLogger("snippet_registry")

LINE_CLASS = "line"
MARKED_LINE_CLASS = "highlighted-line"


class LineMarkingHtmlFormatter(HtmlFormatter):
    """HtmlFormatter that wraps each source line in ``<span class="line">``.

    Lines listed in ``marked_lines`` (1-based) additionally carry
    ``highlighted-line``.
    """

    def __init__(self, **options):
        marked = options.pop("marked_lines", None) or ()
        super().__init__(**options)
        self.marked_lines = frozenset(marked)

    def wrap(self, source):
        return super().wrap(self._wrap_lines(source))

    def _wrap_lines(self, source: Iterable[Tuple[int, str]]) -> Iterator[Tuple[int, str]]:
        lineno = 0
        for kind, value in source:
            if kind != 1:
                yield kind, value
                continue
            lineno += 1
            body, newline = (value[:-1], "\n") if value.endswith("\n") else (value, "")
            css = LINE_CLASS
            if lineno in self.marked_lines:
                css = f"{LINE_CLASS} {MARKED_LINE_CLASS}"
            yield 1, f'<span class="{css}">{body}</span>{newline}'


class Highlighter:
    """Render code with Pygments; falls back to the raw text on any failure."""

    def __init__(self, style: str = DEFAULT_STYLE, css_class: str = "highlight") -> None:
        try:
            get_style_by_name(style)
        except ClassNotFound:
            logger.warning("Unknown Pygments style %s; using default", style)
            style = "default"
        self.style = style
        self.css_class = css_class

    def render(
        self,
        code: str,
        language: str,
        marked_lines: Optional[AbstractSet[int] | Iterable[int]] = None,
    ) -> str:
        try:
            lexer = get_lexer_by_name((language or "").strip(), stripnl=False)
            formatter = LineMarkingHtmlFormatter(
                style=self.style,
                cssclass=self.css_class,
                marked_lines=marked_lines,
            )
            return pygments_highlight(code, lexer, formatter)
        except ClassNotFound:
            logger.debug("No grammar for language %r; returning raw code", language)
            return code
        except Exception:
            logger.debug("Highlighting failed for language %r", language, exc_info=True)
            return code


_default_highlighter = Highlighter()


def render(
    code: str,
    language: str,
    marked_lines: Optional[AbstractSet[int] | Iterable[int]] = None,
) -> str:
    """Highlight ``code`` with the default style. Never raises."""
    return _default_highlighter.render(code, language, marked_lines)


__all__ = [
    "Highlighter",
    "LineMarkingHtmlFormatter",
    "LINE_CLASS",
    "MARKED_LINE_CLASS",
    "render",
]
