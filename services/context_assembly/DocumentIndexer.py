"""Document listing and summary projection for relevance scoring."""

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.models.Document import DocumentDetails, DocumentSummary
from shared.clients.dms.models.Property import PropertyKind
from shared.extract.PropertyValueExtractor import PropertyValueExtractor
from shared.helper.HelperConfig import HelperConfig


class DocumentIndexer:
    """Lists every document of the configured collection and projects each
    one onto the fields the relevance scorer looks at. Nothing is cached: the
    index is rebuilt on every call."""

    def __init__(
        self,
        helper_config: HelperConfig,
        dms_client: DMSClientInterface,
        property_extractor: PropertyValueExtractor | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._properties = property_extractor or PropertyValueExtractor()
        self._page_size = int(helper_config.get_number_val("CONTEXT_DOCUMENT_PAGE_SIZE", default=100))

        # names of the document properties feeding the summary
        self._owner_property = helper_config.get_string_val("CONTEXT_OWNER_PROPERTY", default="Owner")
        self._kind_property = helper_config.get_string_val("CONTEXT_KIND_PROPERTY", default="Type")
        self._product_property = helper_config.get_string_val("CONTEXT_PRODUCT_PROPERTY", default="Product")
        self._tags_property = helper_config.get_string_val("CONTEXT_TAGS_PROPERTY", default="Tags")

    async def do_index(self) -> list[DocumentDetails]:
        """Fetch all documents of the collection.

        Returns:
            list[DocumentDetails]: All documents in backend order.
        """
        documents = await self._dms.do_fetch_documents(page_size=self._page_size)
        self.logging.info("Indexed %d documents from %s.", len(documents), self._dms.get_engine_name())
        return documents

    def summarize(self, document: DocumentDetails) -> DocumentSummary:
        """Project a document onto its searchable summary fields.

        Args:
            document (DocumentDetails): The document to summarize.

        Returns:
            DocumentSummary: The summary used for scoring.
        """
        return DocumentSummary(
            id=document.id,
            title=document.title,
            owner=self.get_owner(document) or "",
            kind=self._get_property_text(document, self._kind_property) or "",
            product=self._get_property_text(document, self._product_property) or "",
            created_by=document.created_by or "",
            tags=self._get_tags(document),
        )

    def get_owner(self, document: DocumentDetails) -> str | None:
        """The owner names of a document, or None if it has no owner property."""
        return self._get_property_text(document, self._owner_property)

    def get_owner_property(self) -> str:
        return self._owner_property

    def _get_property_text(self, document: DocumentDetails, name: str) -> str | None:
        return self._properties.extract(document.properties.get(name))

    def _get_tags(self, document: DocumentDetails) -> list[str]:
        prop = document.properties.get(self._tags_property)
        if prop is None:
            return []
        if prop.kind == PropertyKind.MULTI_SELECT:
            return list(prop.names or [])
        value = self._properties.extract(prop)
        return [value] if value else []
