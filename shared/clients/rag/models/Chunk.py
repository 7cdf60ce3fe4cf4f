from pydantic import BaseModel


class RetrievedChunk(BaseModel):
    """A pre-ranked text chunk returned by a retrieval backend.

    Attributes:
        text:        The chunk text, handed on verbatim.
        score:       Similarity score reported by the backend.
        document_id: ID of the source document, if the backend stores it.
    """

    text: str
    score: float = 0.0
    document_id: str | None = None
