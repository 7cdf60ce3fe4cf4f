"""Context assembly backed by an external vector retrieval service."""

from services.context_assembly.ContextSourceInterface import ContextSourceInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.helper.HelperConfig import HelperConfig

CHUNK_SEPARATOR = "\n\n---\n\n"


class RetrievalContextService(ContextSourceInterface):
    """Asks every configured retrieval backend for pre-ranked chunks and joins
    them into one string. Chunks keep the backend's order; backends are asked
    in configuration order."""

    def __init__(self, helper_config: HelperConfig, rag_clients: list[RAGClientInterface]) -> None:
        self.logging = helper_config.get_logger()
        self._rag_clients = rag_clients
        self._limit = int(helper_config.get_number_val("RAG_RESULT_LIMIT", default=5))

    async def do_assemble(self, query: str) -> str:
        texts: list[str] = []
        for client in self._rag_clients:
            chunks = await client.do_retrieve(query, limit=self._limit)
            texts.extend(chunk.text for chunk in chunks)
        self.logging.info("Retrieval context for query=%r: %d chunks.", query[:80], len(texts))
        return CHUNK_SEPARATOR.join(texts)
