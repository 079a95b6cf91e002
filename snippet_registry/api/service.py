"""Service helpers shared by the HTTP routes and the MCP tools."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from ..runtime import RegistryService
from .model import SnippetDetailResponse, SnippetListResponse

logger = logging.getLogger("snippet_registry")


def list_snippets_service(registry: RegistryService) -> SnippetListResponse:
    ids = registry.list_ids()
    return SnippetListResponse(
        ids=ids,
        count=len(ids),
        last_generated=registry.last_generated,
    )


async def get_snippet_service(
    snippet_id: str,
    registry: RegistryService,
    *,
    highlighted: bool = True,
) -> SnippetDetailResponse:
    """Resolve one snippet; raises ``HTTPException(404)`` for unknown ids."""

    raw = registry.get_raw(snippet_id)
    metadata = registry.get_metadata(snippet_id)
    if raw is None or metadata is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Snippet '{snippet_id}' not found",
        )

    rendered = raw
    if highlighted:
        rendered = await registry.get_highlighted(snippet_id) or raw
    logger.debug("Resolved snippet %s", snippet_id)

    return SnippetDetailResponse(
        id=snippet_id,
        raw=raw,
        highlighted=rendered,
        metadata=metadata,
    )


__all__ = ["get_snippet_service", "list_snippets_service"]
