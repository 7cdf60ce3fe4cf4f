"""Generic document model, backend-independent."""

from datetime import datetime

from pydantic import BaseModel

from shared.clients.dms.models.Property import PropertyValue


class DocumentBase(BaseModel):
    """
    Identifies a single document (page) of a DMS.
    """
    engine: str
    id: str


class DocumentDetails(DocumentBase):
    """
    Represents a single document with all its metadata, as returned by a DMS client.
    The content tree is not part of it and must be walked separately.
    """
    title: str = "Untitled"
    properties: dict[str, PropertyValue] = {}
    created_time: datetime | None = None
    last_edited_time: datetime | None = None
    created_by: str | None = None
    last_edited_by: str | None = None
    url: str | None = None


class DocumentsListResponse(BaseModel):
    """
    Represents one page of a cursor-paginated document listing.
    """
    engine: str
    documents: list[DocumentDetails] = []
    currentPage: int = 1
    nextCursor: str | None = None
    hasMore: bool = False


class DocumentSummary(BaseModel):
    """
    Read-only projection of a document used for relevance scoring. Rebuilt on
    every scoring pass.
    """
    id: str
    title: str
    owner: str = ""
    kind: str = ""
    product: str = ""
    created_by: str = ""
    tags: list[str] = []

    def get_searchable_text(self) -> str:
        """All summary fields in one lowercase string."""
        fields = [self.title, self.owner, self.kind, self.product, self.created_by, *self.tags]
        return " ".join(field for field in fields if field).lower()
