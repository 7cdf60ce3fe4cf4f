from abc import abstractmethod
from typing import Any, Callable

import httpx

from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.dms.models.Document import DocumentDetails, DocumentsListResponse
from shared.clients.dms.models.Block import BlocksListResponse
from shared.exceptions import ClientRequestError, SkippableBlockError


class DMSClientInterface(ClientInterface):
    """
    Read-only client for a tree-structured document store. Exposes the three
    calls context assembly needs: list documents, get a document by id and
    list the children of a block, each cursor-paginated where applicable.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "dms"
        """
        return "dms"

    @abstractmethod
    def get_max_page_size(self) -> int:
        """
        Returns the largest page size the backend accepts for listing requests.
        """
        pass

    def clamp_page_size(self, page_size: int) -> int:
        """
        Clamps a requested page size into 1..get_max_page_size().
        """
        return max(1, min(int(page_size), self.get_max_page_size()))

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_documents(self, cursor: str | None = None, page_size: int = 100) -> str:
        """
        Returns the endpoint path for document listing requests.

        Args:
            cursor (str | None): Continuation cursor of the previous page, None for the first page.
            page_size (int): The number of documents per page.

        Returns:
            str: The endpoint path for document listing requests (e.g. "/databases/{id}/query")
        """
        pass

    @abstractmethod
    def _get_documents_method(self) -> str:
        """
        Returns the HTTP method of the document listing request (e.g. "POST").
        """
        pass

    @abstractmethod
    def _get_documents_payload(self, cursor: str | None = None, page_size: int = 100) -> dict | None:
        """
        Returns the JSON body of the document listing request, or None if the request has no body.

        Args:
            cursor (str | None): Continuation cursor of the previous page, None for the first page.
            page_size (int): The number of documents per page.
        """
        pass

    @abstractmethod
    def _get_endpoint_document_details(self, document_id: str) -> str:
        """
        Returns the endpoint path for document details requests.

        Args:
            document_id (str): The ID of the document.

        Returns:
            str: The endpoint path for document details requests (e.g. "/pages/{id}")
        """
        pass

    @abstractmethod
    def _get_endpoint_block_children(self, block_id: str, cursor: str | None = None, page_size: int = 100) -> str:
        """
        Returns the endpoint path for listing the children of a block.

        Args:
            block_id (str): The ID of the parent block (a document ID addresses its root).
            cursor (str | None): Continuation cursor of the previous page, None for the first page.
            page_size (int): The number of children per page.

        Returns:
            str: The endpoint path (e.g. "/blocks/{id}/children?page_size=100")
        """
        pass

    ################ ERRORS ##################
    @abstractmethod
    def _is_skippable_error(self, error: ClientRequestError) -> bool:
        """
        Returns True if the error means that a single block cannot be traversed,
        as opposed to a failure of the whole backend.

        Args:
            error (ClientRequestError): The error raised by a block children request.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    ############# LISTING REQUESTS ##############
    async def do_fetch_documents_page(self, cursor: str | None = None, page_size: int = 100) -> DocumentsListResponse:
        """
        Fetches a single page of the document listing.

        Args:
            cursor (str | None): Continuation cursor of the previous page, None for the first page.
            page_size (int): The number of documents per page.

        Returns:
            DocumentsListResponse: The parsed page.

        Raises:
            ClientRequestError: If the backend answers with a non-2xx status.
        """
        page_size = self.clamp_page_size(page_size)
        resp = await self.do_request(
            method=self._get_documents_method(),
            endpoint=self._get_endpoint_documents(cursor=cursor, page_size=page_size),
            json=self._get_documents_payload(cursor=cursor, page_size=page_size),
            raise_on_error=True,
        )
        return self._parse_response(resp, self._parse_endpoint_documents)

    async def do_fetch_documents(self, page_size: int = 100) -> list[DocumentDetails]:
        """
        Fetches all documents from the dms backend, following the continuation cursor.

        Args:
            page_size (int): The number of documents per page.

        Returns:
            list[DocumentDetails]: All documents, in backend order.

        Raises:
            ClientRequestError: If any page request fails.
        """
        documents: list[DocumentDetails] = []
        cursor: str | None = None
        page = 1
        while True:
            documents_list_response = await self.do_fetch_documents_page(cursor=cursor, page_size=page_size)
            documents.extend(documents_list_response.documents)
            self.logging.info("Fetched documents page %d from %s, total documents so far: %d", page, self._get_engine_name(), len(documents))
            cursor = documents_list_response.nextCursor if documents_list_response.hasMore else None
            if not cursor:
                break
            page += 1
        return documents

    async def do_fetch_block_children(self, block_id: str, cursor: str | None = None, page_size: int = 100) -> BlocksListResponse:
        """
        Fetches a single page of the children of a block.

        Args:
            block_id (str): The ID of the parent block.
            cursor (str | None): Continuation cursor of the previous page, None for the first page.
            page_size (int): The number of children per page.

        Returns:
            BlocksListResponse: The parsed page of child blocks.

        Raises:
            SkippableBlockError: If the backend refuses to traverse this block.
            ClientRequestError: For any other non-2xx response, or a body that does not parse.
        """
        try:
            resp = await self.do_request(
                method="GET",
                endpoint=self._get_endpoint_block_children(block_id, cursor=cursor, page_size=self.clamp_page_size(page_size)),
                raise_on_error=True,
            )
        except ClientRequestError as e:
            if not self._is_skippable_error(e):
                e.context.setdefault("block_id", block_id)
                raise
            raise SkippableBlockError(
                e.message,
                status_code=e.status_code,
                code=e.code,
                url=e.url,
                context={"block_id": block_id, **e.context},
            ) from e
        return self._parse_response(resp, self._parse_endpoint_block_children, block_id=block_id)

    ############# GET REQUESTS ##############
    async def do_fetch_document_details(self, document_id: str) -> DocumentDetails:
        """
        Fetches the metadata of a single document.

        Args:
            document_id (str): The ID of the document to fetch.

        Returns:
            DocumentDetails: The details of the fetched document.

        Raises:
            ClientRequestError: If the backend answers with a non-2xx status. The error context
                carries the document_id, so callers can tell a failed lookup from a failed walk.
        """
        try:
            resp = await self.do_request(method="GET", endpoint=self._get_endpoint_document_details(document_id), raise_on_error=True)
        except ClientRequestError as e:
            e.context.setdefault("document_id", document_id)
            raise
        return self._parse_response(resp, self._parse_endpoint_document, document_id=document_id)

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def _parse_response(self, resp: httpx.Response, parser: Callable[[Any], Any], **context: Any) -> Any:
        """
        Decodes a 2xx response body and hands it to parser.

        Raises:
            ClientRequestError: If the body is not JSON or does not have the expected shape.
                A gateway answering 200 with an HTML page ends up here.
        """
        try:
            return parser(resp.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            # pydantic's ValidationError and json's JSONDecodeError are ValueErrors
            raise ClientRequestError(
                f"Malformed response from {self._get_engine_name()}: {e}",
                status_code=resp.status_code,
                code="malformed_response",
                url=str(resp.request.url),
                context=context,
            ) from e

    @abstractmethod
    def _parse_endpoint_documents(self, response: dict) -> DocumentsListResponse:
        """
        Parses the response of the document listing endpoint.

        Args:
            response (dict): The raw response from the document listing endpoint.

        Returns:
            DocumentsListResponse: The documents of this page and the continuation cursor.
        """
        pass

    @abstractmethod
    def _parse_endpoint_document(self, response: dict) -> DocumentDetails:
        """
        Parses a raw document dict from the backend API into a DocumentDetails object.

        Args:
            response (dict): The raw document data as returned by the backend API.

        Returns:
            DocumentDetails: The parsed document object.
        """
        pass

    @abstractmethod
    def _parse_endpoint_block_children(self, response: dict) -> BlocksListResponse:
        """
        Parses the response of the block children endpoint.

        Args:
            response (dict): The raw response from the block children endpoint.

        Returns:
            BlocksListResponse: The child blocks of this page and the continuation cursor.
        """
        pass
