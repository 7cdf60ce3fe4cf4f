import os

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import ContextRequest
from server.models.responses import ContextResponse, DocumentContextResponse, HealthResponse
from services.context_assembly.ContextService import ContextService
from shared.exceptions import ClientRequestError, DocumentFetchError

router = APIRouter(tags=["context"])


def _is_missing_document(error: ClientRequestError) -> bool:
    """True when the document lookup failed, as opposed to walking an existing document's content."""
    if error.status_code == 404 or error.code == "object_not_found":
        return True
    # an id the backend cannot even parse
    return error.status_code == 400 and "document_id" in error.context


@router.post("/context")
async def build_context(
    request: Request,
    body: ContextRequest,
    _: None = Depends(verify_api_key),
) -> ContextResponse:
    """Assemble the LLM context for a query.

    Args:
        request (Request): FastAPI request (provides app.state.context_source).
        body (ContextRequest): JSON body with the query string.
        _ (None): Auth dependency result (unused).

    Returns:
        ContextResponse: The context text plus the selected and failed documents.
    """
    context_source = request.app.state.context_source
    try:
        # only the keyword path knows which documents were selected
        if isinstance(context_source, ContextService):
            bundle = await context_source.do_build_bundle(body.query)
            return ContextResponse(
                query=bundle.query,
                context=bundle.text,
                documents=bundle.documents,
                failed_document_ids=bundle.failed_document_ids,
                no_relevant_documents=bundle.no_relevant_documents,
            )
        text = await context_source.do_assemble(body.query)
        return ContextResponse(query=body.query, context=text)
    except DocumentFetchError as e:
        request.app.state.logging.error("Context assembly failed for all documents: %s", e.message)
        raise HTTPException(status_code=502, detail={"message": e.message, "document_ids": e.document_ids})
    except ClientRequestError as e:
        request.app.state.logging.error("Document source request failed: %s", e.message)
        raise HTTPException(status_code=502, detail=e.message)
    except httpx.HTTPError as e:
        request.app.state.logging.error("Document source unreachable: %s", e)
        raise HTTPException(status_code=502, detail="Document source unreachable")


@router.get("/documents/{document_id}/context")
async def build_document_context(
    request: Request,
    document_id: str,
    _: None = Depends(verify_api_key),
) -> DocumentContextResponse:
    """Render the context of a single document, independent of any query.

    Args:
        request (Request): FastAPI request (provides app.state.context_service).
        document_id (str): ID of the document in the document source.
        _ (None): Auth dependency result (unused).

    Returns:
        DocumentContextResponse: The rendered header and content.
    """
    context_service: ContextService = request.app.state.context_service
    try:
        text = await context_service.do_build_document_context(document_id)
    except ClientRequestError as e:
        if _is_missing_document(e):
            raise HTTPException(status_code=404, detail=f"Document '{document_id}' not found")
        request.app.state.logging.error("Fetching document %s failed: %s", document_id, e.message)
        raise HTTPException(status_code=502, detail=e.message)
    except httpx.HTTPError as e:
        request.app.state.logging.error("Fetching document %s failed: %s", document_id, e)
        raise HTTPException(status_code=502, detail="Document source unreachable")
    return DocumentContextResponse(document_id=document_id, context=text)


@router.get("/health")
async def health(request: Request) -> HealthResponse:
    """Report service status and whether the document source is reachable."""
    dms_client = request.app.state.dms_client
    try:
        result: httpx.Response = await dms_client.do_healthcheck()
        reachable = result.is_success
    except httpx.HTTPError as e:
        request.app.state.logging.warning("Document source healthcheck failed: %s", e)
        reachable = False
    return HealthResponse(
        status="ok",
        version=os.getenv("APP_VERSION", "unknown"),
        context_source=request.app.state.context_source_name,
        dms_engine=dms_client.get_engine_name(),
        dms_reachable=reachable,
    )
