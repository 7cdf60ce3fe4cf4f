"""Tests for context assembly end to end over the fake workspace."""

import asyncio

import pytest

from conftest import block, page, paragraph, people_prop, select_prop
from services.context_assembly.BlockWalker import BlockWalker
from services.context_assembly.ContextService import DOCUMENT_SEPARATOR, ContextService
from shared.exceptions import AssemblyCancelledError, ClientRequestError, DocumentFetchError


@pytest.fixture
def service(helper_config, dms_client):
    return ContextService(helper_config, dms_client)


@pytest.fixture
def handbook(workspace):
    """Three documents, two of them about policies."""
    workspace.add_page(
        page("travel", "Travel Reimbursement Policy", properties={
            "Owner": people_prop("Alice"),
            "Status": select_prop("Active"),
        }),
        blocks=[
            block("h", "heading_1", "Scope"),
            paragraph("p", "Applies to all business trips.", has_children=True),
            block("todo", "to_do", "Submit form", checked=True),
        ],
    )
    workspace.add_children("p", [block("li", "bulleted_list_item", "Economy class only")])
    workspace.add_page(page("office", "Office Guide"), blocks=[paragraph("o1", "Wifi password is on the fridge.")])
    workspace.add_page(page("expense", "Expense Policy", created_time="2023-12-31T23:15:00.000Z"), blocks=[])
    return workspace


@pytest.mark.asyncio
async def test_selected_documents_are_rendered_in_rank_order(service, handbook):
    bundle = await service.do_build_bundle("reimbursement policy")

    assert [summary.id for summary in bundle.documents] == ["travel", "expense"]
    assert bundle.failed_document_ids == []
    assert bundle.no_relevant_documents is False

    travel, expense = bundle.text.split(DOCUMENT_SEPARATOR)
    assert travel == (
        "DOCUMENT METADATA\n"
        "Title: Travel Reimbursement Policy\n"
        "Owner: Alice\n"
        "Created date: 2024-03-01 09:30\n"
        "\n"
        "DOCUMENT PROPERTIES\n"
        "Status: Active\n"
        "\n"
        "DOCUMENT CONTENT\n"
        "# Scope\n"
        "Applies to all business trips.\n"
        "• Economy class only\n"
        "[x] Submit form"
    )
    assert expense.startswith("DOCUMENT METADATA\nTitle: Expense Policy\nOwner: Not specified\n")


@pytest.mark.asyncio
async def test_document_without_blocks_gets_placeholder_content(service, handbook):
    text = await service.do_assemble("expense")

    assert text.endswith('DOCUMENT CONTENT\nThis is a document titled "Expense Policy". No detailed content available.')
    assert "DOCUMENT PROPERTIES" not in text
    assert "Created date: 2023-12-31 23:15" in text


@pytest.mark.asyncio
async def test_created_date_uses_configured_timezone(helper_config, dms_client, handbook, monkeypatch):
    monkeypatch.setenv("TIMEZONE", "Europe/Berlin")
    service = ContextService(helper_config, dms_client)

    text = await service.do_assemble("expense")

    assert "Created date: 2024-01-01 00:15" in text


@pytest.mark.asyncio
async def test_no_match_returns_title_listing_without_fetching_content(service, handbook):
    bundle = await service.do_build_bundle("quarterly roadmap")

    assert bundle.no_relevant_documents is True
    assert bundle.documents == []
    assert bundle.text == (
        'No documents matched "quarterly roadmap". Available documents:\n'
        "- Travel Reimbursement Policy\n"
        "- Office Guide\n"
        "- Expense Policy"
    )
    assert handbook.children_requests() == []


@pytest.mark.asyncio
async def test_fallback_listing_is_capped(service, workspace):
    for i in range(12):
        workspace.add_page(page(f"p{i}", f"Note {i}"))

    text = await service.do_assemble("zzz")

    assert text.splitlines()[-1] == "... and 2 more"
    assert "- Note 9" in text
    assert "- Note 10" not in text


@pytest.mark.asyncio
async def test_empty_workspace(service):
    bundle = await service.do_build_bundle("anything")

    assert bundle.no_relevant_documents is True
    assert bundle.text == 'No documents matched "anything". No documents are available.'


@pytest.mark.asyncio
async def test_failed_document_is_excluded(service, handbook):
    handbook.fail_children("travel", 500, "internal_server_error", "Unexpected error.")

    bundle = await service.do_build_bundle("reimbursement policy")

    assert bundle.failed_document_ids == ["travel"]
    assert DOCUMENT_SEPARATOR not in bundle.text
    assert bundle.text.startswith("DOCUMENT METADATA\nTitle: Expense Policy")


@pytest.mark.asyncio
async def test_all_documents_failing_raises(service, handbook):
    handbook.fail_children("travel", 500, "internal_server_error", "Unexpected error.")
    handbook.fail_children("expense", 503, "service_unavailable", "Notion is unavailable.")

    with pytest.raises(DocumentFetchError) as exc_info:
        await service.do_build_bundle("reimbursement policy")

    assert exc_info.value.document_ids == ["travel", "expense"]


@pytest.mark.asyncio
async def test_refused_root_is_a_document_failure(service, handbook):
    handbook.fail_children("expense", 400, "validation_error", "Could not load this page.")

    bundle = await service.do_build_bundle("reimbursement policy")

    assert bundle.failed_document_ids == ["expense"]
    assert bundle.text.startswith("DOCUMENT METADATA\nTitle: Travel Reimbursement Policy")


@pytest.mark.asyncio
async def test_listing_failure_propagates(service, handbook):
    handbook.fail_listing(401, "unauthorized", "API token is invalid.")

    with pytest.raises(ClientRequestError):
        await service.do_assemble("policy")


@pytest.mark.asyncio
async def test_cancelled_assembly_fetches_nothing(service, handbook):
    cancel_event = asyncio.Event()
    cancel_event.set()

    with pytest.raises(AssemblyCancelledError):
        await service.do_assemble("reimbursement policy", cancel_event=cancel_event)

    assert handbook.children_requests() == []


@pytest.mark.asyncio
async def test_single_document_context(service, handbook):
    text = await service.do_build_document_context("office")

    assert text == (
        "DOCUMENT METADATA\n"
        "Title: Office Guide\n"
        "Owner: Not specified\n"
        "Created date: 2024-03-01 09:30\n"
        "\n"
        "DOCUMENT CONTENT\n"
        "Wifi password is on the fridge."
    )


@pytest.mark.asyncio
async def test_single_document_context_for_unknown_id(service, handbook):
    with pytest.raises(ClientRequestError) as exc_info:
        await service.do_build_document_context("missing")

    assert exc_info.value.status_code == 404


class SlowWalker(BlockWalker):
    """Walker stub that records how many documents are fetched at once."""

    def __init__(self, delays: dict[str, float]):
        self.delays = delays
        self.active = 0
        self.max_active = 0

    async def do_collect(self, block_id: str) -> list[str]:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(self.delays.get(block_id, 0.01))
        self.active -= 1
        return [f"content of {block_id}"]


@pytest.mark.asyncio
async def test_fetches_are_bounded_and_keep_rank_order(helper_config, dms_client, workspace, monkeypatch):
    monkeypatch.setenv("CONTEXT_DOC_CONCURRENCY", "2")
    for doc_id in ("a", "b", "c"):
        workspace.add_page(page(doc_id, f"Policy {doc_id}"))
    walker = SlowWalker(delays={"a": 0.05})
    service = ContextService(helper_config, dms_client, walker=walker)

    bundle = await service.do_build_bundle("policy")

    assert walker.max_active == 2
    contents = [part.rsplit("\n", 1)[-1] for part in bundle.text.split(DOCUMENT_SEPARATOR)]
    assert contents == ["content of a", "content of b", "content of c"]


@pytest.mark.asyncio
async def test_garbled_document_content_excludes_only_that_document(service, workspace):
    for doc_id in ("a", "b", "c"):
        workspace.add_page(page(doc_id, f"Policy {doc_id}"), blocks=[paragraph(f"{doc_id}1", f"Rules of {doc_id}")])
    workspace.garble_children("b", b"<html>gateway</html>")

    bundle = await service.do_build_bundle("policy")

    assert bundle.failed_document_ids == ["b"]
    parts = bundle.text.split(DOCUMENT_SEPARATOR)
    assert [part.rsplit("\n", 1)[-1] for part in parts] == ["Rules of a", "Rules of c"]


class CancellingWalker(BlockWalker):
    """Walker stub that cancels the assembly while fetching its first document."""

    def __init__(self, cancel_event: asyncio.Event):
        self.cancel_event = cancel_event
        self.collected: list[str] = []

    async def do_collect(self, block_id: str) -> list[str]:
        self.collected.append(block_id)
        self.cancel_event.set()
        return [f"content of {block_id}"]


@pytest.mark.asyncio
async def test_cancelling_after_first_document_skips_the_rest(helper_config, dms_client, workspace, monkeypatch):
    monkeypatch.setenv("CONTEXT_DOC_CONCURRENCY", "1")
    for doc_id in ("a", "b", "c"):
        workspace.add_page(page(doc_id, f"Policy {doc_id}"))
    cancel_event = asyncio.Event()
    walker = CancellingWalker(cancel_event)
    service = ContextService(helper_config, dms_client, walker=walker)

    with pytest.raises(AssemblyCancelledError) as exc_info:
        await service.do_build_bundle("policy", cancel_event=cancel_event)

    assert walker.collected == ["a"]
    assert exc_info.value.context["completed_documents"] == 1
