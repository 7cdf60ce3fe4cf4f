from pydantic import BaseModel

from shared.clients.dms.models.Document import DocumentSummary


class ContextResponse(BaseModel):
    query: str
    context: str
    documents: list[DocumentSummary] = []
    failed_document_ids: list[str] = []
    no_relevant_documents: bool = False


class DocumentContextResponse(BaseModel):
    document_id: str
    context: str


class HealthResponse(BaseModel):
    status: str
    version: str
    context_source: str
    dms_engine: str
    dms_reachable: bool
