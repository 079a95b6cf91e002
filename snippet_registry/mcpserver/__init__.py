"""MCP surface for registry lookups."""

from .server import create_server

__all__ = ["create_server"]
