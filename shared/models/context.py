"""Pydantic models for assembled context."""

from pydantic import BaseModel

from shared.clients.dms.models.Document import DocumentSummary


class ContextBundle(BaseModel):
    """The flattened context built for one query.

    no_relevant_documents is True when no document matched the query; text
    then holds the fallback listing of available titles instead of content.
    """

    query: str
    text: str
    documents: list[DocumentSummary] = []
    failed_document_ids: list[str] = []
    no_relevant_documents: bool = False
