from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.Chunk import RetrievedChunk
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default=None, val_type="string")
        self._model = self.get_config_val("MODEL", default=None, val_type="string")
        self._text_field = self.get_config_val("TEXT_FIELD", default="chunk_text", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default=None),
            EnvConfig(env_key="MODEL", val_type="string", default=None),
            EnvConfig(env_key="TEXT_FIELD", val_type="string", default="chunk_text"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_query(self) -> str:
        return f"/collections/{self._collection_name}/points/query"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_query_payload(self, query: str, limit: int) -> dict:
        # the server embeds the query text itself
        return {
            "query": {"text": query, "model": self._model},
            "limit": limit,
            "with_payload": True,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_query_chunks(self, raw_response: dict) -> list[RetrievedChunk]:
        points = raw_response.get("result", {}).get("points", [])
        chunks = []
        for point in points:
            payload = point.get("payload") or {}
            text = payload.get(self._text_field)
            if not text:
                continue
            doc_id = payload.get("dms_doc_id")
            chunks.append(RetrievedChunk(
                text=text,
                score=point.get("score") or 0.0,
                document_id=str(doc_id) if doc_id is not None else None,
            ))
        return chunks
