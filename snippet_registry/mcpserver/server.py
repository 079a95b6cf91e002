"""FastMCP server exposing registry lookups as MCP tools."""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import HTTPException
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from ..api.service import get_snippet_service, list_snippets_service
from ..runtime import RegistryService

logger = logging.getLogger("snippet_registry")


def _handle_http_exception(exc: HTTPException, *, default_message: str) -> ToolError:
    detail = exc.detail if isinstance(exc.detail, str) else None
    message = detail or default_message
    return ToolError(message)


def _handle_generic_exception(exc: Exception, *, default_message: str) -> ToolError:
    logger.exception(default_message)
    return ToolError(f"{default_message}: {exc}")


async def get_snippet_tool(
    registry: RegistryService,
    snippet_id: str,
    highlighted: bool = True,
) -> Dict[str, Any]:
    if not snippet_id or not snippet_id.strip():
        raise ToolError("Snippet id is required.")

    try:
        response = await get_snippet_service(
            snippet_id.strip(), registry, highlighted=highlighted
        )
    except HTTPException as exc:
        raise _handle_http_exception(exc, default_message="Snippet lookup failed")
    except Exception as exc:  # pragma: no cover
        raise _handle_generic_exception(exc, default_message="Snippet lookup failed")

    return response.model_dump(mode="json", by_alias=True, exclude_none=True)


def list_snippets_tool(registry: RegistryService) -> Dict[str, Any]:
    return list_snippets_service(registry).model_dump(mode="json", by_alias=True)


def create_server(registry: RegistryService) -> FastMCP:
    """Create a FastMCP server bound to ``registry``."""

    server = FastMCP("Snippet Registry MCP Server")

    @server.tool(
        name="get_snippet",
        description=(
            "Fetch one registered snippet or example file by id. Returns the raw source,"
            " the highlighted HTML and its metadata. Set `highlighted` to false when only"
            " the raw source is needed."
        ),
        tags={"snippets", "lookup"},
    )
    async def get_snippet(snippet_id: str, highlighted: bool = True) -> Dict[str, Any]:
        """Look up a snippet by id."""
        return await get_snippet_tool(registry, snippet_id, highlighted)

    @server.tool(
        name="list_snippets",
        description="List every snippet id known to the registry, with the build timestamp.",
        tags={"snippets", "lookup"},
    )
    def list_snippets() -> Dict[str, Any]:
        """List registered snippet ids."""
        return list_snippets_tool(registry)

    return server


__all__ = ["create_server", "get_snippet_tool", "list_snippets_tool"]
