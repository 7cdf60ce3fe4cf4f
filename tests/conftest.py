"""Pytest configuration and fixtures.

The document source is exercised through the real Notion client over an
httpx.MockTransport that serves an in-memory fake workspace.
"""

import json
import os
import logging

import httpx
import pytest
import pytest_asyncio

from shared.clients.dms.notion.DMSClientNotion import DMSClientNotion
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger

CONFIG_PREFIXES = ("DMS_", "CONTEXT_", "RAG_", "API_SERVER_")


##########################################
############ RAW API BUILDERS ############
##########################################

def rich(text: str) -> list[dict]:
    """A Notion rich text array holding a single text span."""
    return [{
        "type": "text",
        "text": {"content": text, "link": None},
        "annotations": {"bold": False, "italic": False, "code": False},
        "plain_text": text,
        "href": None,
    }]


def block(block_id: str, kind: str, text: str | None = None, has_children: bool = False, **payload) -> dict:
    body = dict(payload)
    if text is not None:
        body["rich_text"] = rich(text)
    return {
        "object": "block",
        "id": block_id,
        "type": kind,
        "has_children": has_children,
        kind: body,
    }


def paragraph(block_id: str, text: str, has_children: bool = False) -> dict:
    return block(block_id, "paragraph", text, has_children=has_children)


def user(name: str) -> dict:
    return {"object": "user", "id": f"user-{name.lower()}", "name": name}


def select_prop(name: str | None) -> dict:
    return {"type": "select", "select": {"name": name} if name else None}


def multi_select_prop(*names: str) -> dict:
    return {"type": "multi_select", "multi_select": [{"name": name} for name in names]}


def people_prop(*names: str) -> dict:
    return {"type": "people", "people": [user(name) for name in names]}


def page(
    page_id: str,
    title: str,
    properties: dict | None = None,
    created_time: str = "2024-03-01T09:30:00.000Z",
    created_by: str = "Alice",
) -> dict:
    props = {"Name": {"id": "title", "type": "title", "title": rich(title)}}
    props.update(properties or {})
    return {
        "object": "page",
        "id": page_id,
        "created_time": created_time,
        "last_edited_time": created_time,
        "created_by": user(created_by),
        "last_edited_by": user(created_by),
        "url": f"https://www.notion.so/{page_id}",
        "properties": props,
    }


def error_body(status: int, code: str, message: str) -> dict:
    return {"object": "error", "status": status, "code": code, "message": message}


##########################################
############ FAKE WORKSPACE ##############
##########################################

class FakeNotionWorkspace:
    """In-memory Notion workspace answering the REST calls the client makes."""

    def __init__(self):
        self.pages: list[dict] = []
        self.databases: list[dict] = []
        self.children: dict[str, list[dict]] = {}
        self.children_errors: dict[tuple[str, str | None], tuple[int, dict]] = {}
        self.children_bodies: dict[str, bytes] = {}
        self.listing_error: tuple[int, dict] | None = None
        self.requests: list[httpx.Request] = []

    ############### SETUP ###############
    def add_page(self, raw_page: dict, blocks: list[dict] | None = None) -> dict:
        self.pages.append(raw_page)
        if blocks is not None:
            self.children[raw_page["id"]] = blocks
        return raw_page

    def add_children(self, parent_id: str, blocks: list[dict]) -> None:
        self.children[parent_id] = blocks

    def fail_children(self, block_id: str, status: int, code: str, message: str, cursor: str | None = None) -> None:
        """Let the children request of block_id fail, on the page starting at cursor."""
        self.children_errors[(block_id, cursor)] = (status, error_body(status, code, message))

    def garble_children(self, block_id: str, content: bytes) -> None:
        """Answer the children request of block_id with 200 and a non-JSON body, like a misbehaving gateway."""
        self.children_bodies[block_id] = content

    def fail_listing(self, status: int, code: str, message: str) -> None:
        self.listing_error = (status, error_body(status, code, message))

    ############### INSPECTION ###############
    def children_requests(self, block_id: str | None = None) -> list[httpx.Request]:
        return [
            request for request in self.requests
            if request.url.path.endswith("/children")
            and (block_id is None or f"/blocks/{block_id}/" in request.url.path)
        ]

    ############### TRANSPORT ###############
    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/v1")
        parts = path.strip("/").split("/")

        if path == "/users/me":
            return httpx.Response(200, json={"object": "user", "id": "bot", "type": "bot"})

        if request.method == "POST" and (path == "/search" or (parts[0] == "databases" and parts[-1] == "query")):
            if self.listing_error:
                status, body = self.listing_error
                return httpx.Response(status, json=body)
            payload = json.loads(request.content or b"{}")
            results = self.pages + self.databases if path == "/search" else self.pages
            return httpx.Response(200, json=self._paginate(results, payload.get("start_cursor"), payload.get("page_size", 100)))

        if request.method == "GET" and parts[0] == "pages":
            for raw_page in self.pages:
                if raw_page["id"] == parts[1]:
                    return httpx.Response(200, json=raw_page)
            return httpx.Response(404, json=error_body(404, "object_not_found", f"Could not find page with ID: {parts[1]}."))

        if request.method == "GET" and parts[0] == "blocks" and parts[-1] == "children":
            block_id = parts[1]
            cursor = request.url.params.get("start_cursor")
            if block_id in self.children_bodies:
                return httpx.Response(200, content=self.children_bodies[block_id])
            if (block_id, cursor) in self.children_errors:
                status, body = self.children_errors[(block_id, cursor)]
                return httpx.Response(status, json=body)
            page_size = int(request.url.params.get("page_size", 100))
            return httpx.Response(200, json=self._paginate(self.children.get(block_id, []), cursor, page_size))

        return httpx.Response(404, json=error_body(404, "invalid_request_url", f"Invalid request URL: {path}"))

    @staticmethod
    def _paginate(items: list[dict], cursor: str | None, page_size: int) -> dict:
        start = int(cursor) if cursor else 0
        chunk = items[start:start + page_size]
        end = start + len(chunk)
        has_more = end < len(items)
        return {
            "object": "list",
            "results": chunk,
            "has_more": has_more,
            "next_cursor": str(end) if has_more else None,
        }


##########################################
############### FIXTURES #################
##########################################

@pytest.fixture(autouse=True)
def notion_env(monkeypatch):
    """A minimal Notion configuration, isolated from the host environment."""
    for key in list(os.environ):
        if key.startswith(CONFIG_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DMS_ENGINE", "notion")
    monkeypatch.setenv("DMS_NOTION_API_KEY", "secret_test")
    monkeypatch.setenv("API_SERVER_API_KEY", "test-key")
    monkeypatch.setenv("TIMEZONE", "UTC")


@pytest.fixture
def logger():
    return ColorLogger(logging.getLogger("context_bridge.tests"))


@pytest.fixture
def helper_config(logger):
    return HelperConfig(logger=logger)


@pytest.fixture
def workspace():
    return FakeNotionWorkspace()


@pytest_asyncio.fixture
async def dms_client(helper_config, workspace):
    client = DMSClientNotion(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(workspace.handler))
    yield client
    await client.close()
