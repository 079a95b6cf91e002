"""Syntax highlighting for registry entries."""

from .highlighter import LINE_CLASS, MARKED_LINE_CLASS, Highlighter, render

__all__ = ["Highlighter", "LINE_CLASS", "MARKED_LINE_CLASS", "render"]
