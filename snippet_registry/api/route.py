"""FastAPI routes for snippet lookups."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..runtime import RegistryService
from .model import SnippetDetailResponse, SnippetListResponse
from .service import get_snippet_service, list_snippets_service


def get_registry_service(request: Request) -> RegistryService:
    registry = getattr(request.app.state, "registry_service", None)
    if not isinstance(registry, RegistryService):
        raise RuntimeError("Registry service has not been initialised")
    return registry


router = APIRouter()


@router.get("/snippets", response_model=SnippetListResponse)
async def list_snippets(
    registry: RegistryService = Depends(get_registry_service),
) -> SnippetListResponse:
    return list_snippets_service(registry)


@router.get("/snippets/{snippet_id:path}", response_model=SnippetDetailResponse)
async def get_snippet(
    snippet_id: str,
    registry: RegistryService = Depends(get_registry_service),
) -> SnippetDetailResponse:
    return await get_snippet_service(snippet_id, registry)


__all__ = ["router", "get_registry_service"]
