import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from snippet_registry.api.route import get_snippet, list_snippets
from snippet_registry.api.server import create_app
from snippet_registry.config import RegistrySettings
from snippet_registry.runtime import RegistryService
from snippet_registry.snippet import EntryMetadata, Registry, RegistryEntry, SnippetDescriptor


class _StubHighlighter:
    def __init__(self):
        self.calls = 0

    def render(self, code, language, marked_lines=None):
        self.calls += 1
        return f"<em>{code}</em>"


@pytest.fixture
def registry_service():
    registry = Registry(
        files={
            "examples/button.tsx": RegistryEntry(
                raw="export default 1;\n",
                highlighted="<pre>export default 1;</pre>",
                metadata=EntryMetadata(language="tsx"),
            )
        }
    )
    descriptors = {"late": SnippetDescriptor(id="late", code="x", language="text", title="Late")}
    service = RegistryService(registry, descriptors, highlighter=_StubHighlighter())
    yield service
    service.close()


@pytest.mark.asyncio
async def test_list_snippets_returns_ids_and_timestamp(registry_service):
    response = await list_snippets(registry=registry_service)

    assert response.ids == ["examples/button.tsx", "late"]
    assert response.count == 2
    assert response.last_generated == registry_service.last_generated
    assert "lastGenerated" in response.model_dump(by_alias=True)


@pytest.mark.asyncio
async def test_get_snippet_uses_precomputed_entry(registry_service):
    response = await get_snippet(snippet_id="examples/button.tsx", registry=registry_service)

    assert response.raw == "export default 1;\n"
    assert response.highlighted == "<pre>export default 1;</pre>"
    assert response.metadata.language == "tsx"


@pytest.mark.asyncio
async def test_get_snippet_highlights_descriptor_only_entry(registry_service):
    response = await get_snippet(snippet_id="late", registry=registry_service)

    assert response.highlighted == "<em>x</em>"
    assert response.metadata.title == "Late"


@pytest.mark.asyncio
async def test_get_snippet_unknown_id_is_404(registry_service):
    with pytest.raises(HTTPException) as excinfo:
        await get_snippet(snippet_id="missing", registry=registry_service)

    assert excinfo.value.status_code == 404


def test_create_app_serves_snippets_over_http(registry_service):
    app = create_app(service=registry_service, settings=RegistrySettings())
    client = TestClient(app)

    listing = client.get("/snippets")
    detail = client.get("/snippets/examples/button.tsx")
    missing = client.get("/snippets/missing")

    assert listing.status_code == 200
    assert listing.json()["ids"] == ["examples/button.tsx", "late"]
    assert "lastGenerated" in listing.json()
    assert detail.status_code == 200
    assert detail.json()["highlighted"] == "<pre>export default 1;</pre>"
    assert missing.status_code == 404
    assert app.state.registry_service is registry_service
