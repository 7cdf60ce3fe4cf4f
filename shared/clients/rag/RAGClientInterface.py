from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.Chunk import RetrievedChunk
from shared.helper.HelperConfig import HelperConfig


class RAGClientInterface(ClientInterface):
    """
    Client for an external vector retrieval service. The service is a black
    box: it receives the query text and answers with pre-ranked chunks.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_query(self) -> str:
        """
        Returns the endpoint path for retrieval requests.

        Returns:
            str: The endpoint path for retrieval requests (e.g. "/collections/my_col/points/query")
        """
        pass

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    @abstractmethod
    def get_query_payload(self, query: str, limit: int) -> dict:
        """
        Returns the payload for a retrieval request.

        Args:
            query (str): The user's free-text query.
            limit (int): The maximum number of chunks to return.

        Returns:
            dict: The payload for the retrieval request.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def extract_query_chunks(self, raw_response: dict) -> list[RetrievedChunk]:
        """
        Extracts the ranked chunks from a raw retrieval response.

        Args:
            raw_response (dict): The raw JSON response from the query endpoint.

        Returns:
            list[RetrievedChunk]: The chunks, best match first. Chunks without text are dropped.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_retrieve(self, query: str, limit: int = 5) -> list[RetrievedChunk]:
        """Ask the retrieval backend for the chunks most similar to a query.

        Args:
            query (str): The user's free-text query.
            limit (int): The maximum number of chunks to return.

        Returns:
            list[RetrievedChunk]: The chunks, best match first.

        Raises:
            ClientRequestError: If the backend answers with a non-2xx status.
        """
        resp = await self.do_request(
            method="POST",
            json=self.get_query_payload(query, limit),
            endpoint=self._get_endpoint_query(),
            raise_on_error=True,
        )
        chunks = self.extract_query_chunks(resp.json())
        self.logging.info("Retrieved %d chunks from %s.", len(chunks), self.get_engine_name())
        return chunks
