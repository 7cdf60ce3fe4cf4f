"""Tests for the vector retrieval context path."""

import json

import httpx
import pytest

from services.context_assembly.RetrievalContextService import CHUNK_SEPARATOR, RetrievalContextService
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.exceptions import ClientRequestError, ConfigurationError


@pytest.fixture
def qdrant_env(monkeypatch):
    monkeypatch.setenv("RAG_ENGINES", "[qdrant]")
    monkeypatch.setenv("RAG_QDRANT_BASE_URL", "http://qdrant:6333")
    monkeypatch.setenv("RAG_QDRANT_COLLECTION", "handbook")
    monkeypatch.setenv("RAG_QDRANT_MODEL", "sentence-transformers/all-minilm-l6-v2")
    monkeypatch.setenv("RAG_RESULT_LIMIT", "2")


def query_response(*texts: str) -> dict:
    points = [
        {"id": i, "score": 0.9 - i / 10, "payload": {"chunk_text": text, "dms_doc_id": f"doc-{i}"}}
        for i, text in enumerate(texts)
    ]
    return {"result": {"points": points}, "status": "ok", "time": 0.01}


def test_manager_requires_engines(helper_config):
    with pytest.raises(ConfigurationError):
        RAGClientManager(helper_config=helper_config)


def test_manager_instantiates_qdrant(helper_config, qdrant_env):
    clients = RAGClientManager(helper_config=helper_config).get_clients()

    assert [client.get_engine_name() for client in clients] == ["qdrant"]


@pytest.mark.asyncio
async def test_chunks_are_joined_in_backend_order(helper_config, qdrant_env):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json=query_response("Economy class only.", "Submit the form within 30 days."))

    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    try:
        text = await RetrievalContextService(helper_config, [client]).do_assemble("travel policy")
    finally:
        await client.close()

    assert text == f"Economy class only.{CHUNK_SEPARATOR}Submit the form within 30 days."
    assert requests[0].url.path == "/collections/handbook/points/query"
    payload = json.loads(requests[0].content)
    assert payload == {
        "query": {"text": "travel policy", "model": "sentence-transformers/all-minilm-l6-v2"},
        "limit": 2,
        "with_payload": True,
    }


@pytest.mark.asyncio
async def test_points_without_text_are_dropped(helper_config, qdrant_env):
    def handler(request: httpx.Request) -> httpx.Response:
        body = query_response("kept")
        body["result"]["points"].append({"id": 9, "score": 0.1, "payload": {}})
        return httpx.Response(200, json=body)

    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    try:
        chunks = await client.do_retrieve("anything", limit=5)
    finally:
        await client.close()

    assert [chunk.text for chunk in chunks] == ["kept"]
    assert chunks[0].document_id == "doc-0"


@pytest.mark.asyncio
async def test_backend_errors_propagate(helper_config, qdrant_env):
    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(lambda request: httpx.Response(404, json={"status": {"error": "Not found"}})))
    try:
        with pytest.raises(ClientRequestError) as exc_info:
            await RetrievalContextService(helper_config, [client]).do_assemble("anything")
    finally:
        await client.close()

    assert exc_info.value.status_code == 404
