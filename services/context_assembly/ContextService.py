"""Context assembly service.

Lists all documents of the DMS, ranks them against the query by keyword
overlap, walks the block tree of the best matches and renders each one as a
metadata header followed by its flattened content.
"""

import asyncio

import httpx
from pytz import timezone

from services.context_assembly.BlockWalker import BlockWalker
from services.context_assembly.ContextSourceInterface import ContextSourceInterface
from services.context_assembly.DocumentIndexer import DocumentIndexer
from services.context_assembly.RelevanceScorer import RelevanceScorer
from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.clients.dms.models.Document import DocumentDetails
from shared.clients.dms.models.Property import PropertyKind
from shared.exceptions import AssemblyCancelledError, ClientRequestError, DocumentFetchError
from shared.extract.PropertyValueExtractor import PropertyValueExtractor
from shared.helper.HelperConfig import HelperConfig
from shared.models.context import ContextBundle

DOCUMENT_SEPARATOR = "\n\n--- NEXT DOCUMENT ---\n\n"
DOC_CONCURRENCY = 3       # max parallel document content fetches
FALLBACK_TITLES = 10      # titles listed when nothing matches
DATE_FORMAT = "%Y-%m-%d %H:%M"

_CANCELLED = object()


class ContextService(ContextSourceInterface):
    """Orchestrates indexing, scoring, traversal and rendering for one query."""

    def __init__(
        self,
        helper_config: HelperConfig,
        dms_client: DMSClientInterface,
        indexer: DocumentIndexer | None = None,
        scorer: RelevanceScorer | None = None,
        walker: BlockWalker | None = None,
        property_extractor: PropertyValueExtractor | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._properties = property_extractor or PropertyValueExtractor()
        self._indexer = indexer or DocumentIndexer(helper_config, dms_client, property_extractor=self._properties)
        self._scorer = scorer or RelevanceScorer()
        self._walker = walker or BlockWalker(helper_config, dms_client)
        self._concurrency = max(1, int(helper_config.get_number_val("CONTEXT_DOC_CONCURRENCY", default=DOC_CONCURRENCY)))
        self._fallback_titles = int(helper_config.get_number_val("CONTEXT_FALLBACK_TITLES", default=FALLBACK_TITLES))
        self._tz = timezone(helper_config.get_string_val("TIMEZONE", default="Europe/Berlin"))

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_assemble(self, query: str, cancel_event: asyncio.Event | None = None) -> str:
        """Build the context string for a query.

        Args:
            query (str): The user's free-text query.
            cancel_event (asyncio.Event | None): Set it to stop before the next document is fetched.

        Returns:
            str: The joined document contexts, or the fallback listing if nothing matched.
        """
        bundle = await self.do_build_bundle(query, cancel_event=cancel_event)
        return bundle.text

    async def do_build_bundle(self, query: str, cancel_event: asyncio.Event | None = None) -> ContextBundle:
        """Build the context bundle for a query.

        Args:
            query (str): The user's free-text query.
            cancel_event (asyncio.Event | None): Set it to stop before the next document is fetched.

        Returns:
            ContextBundle: The context text plus which documents were selected and which failed.

        Raises:
            DocumentFetchError: If every selected document failed to load.
            AssemblyCancelledError: If cancel_event was set during assembly.
            ClientRequestError: If the document listing itself fails.
        """
        self.logging.info("Assembling context for query=%r", query[:80])

        documents = await self._indexer.do_index()
        documents_by_id = {document.id: document for document in documents}
        summaries = [self._indexer.summarize(document) for document in documents]
        ranked = self._scorer.score_all(summaries, query)

        if not ranked:
            self.logging.info(
                "No relevant documents for query=%r among %d documents.", query[:80], len(documents), color="yellow"
            )
            return ContextBundle(
                query=query,
                text=self.render_fallback(query, documents),
                no_relevant_documents=True,
            )

        for summary, score in ranked:
            self.logging.debug("Selected document id=%s ('%s') with score %d.", summary.id, summary.title, score)

        # fetch concurrently, results stay in rank order
        sem = asyncio.Semaphore(self._concurrency)
        results = await asyncio.gather(
            *[
                self._render_selected(documents_by_id[summary.id], sem, cancel_event)
                for summary, _ in ranked
            ]
        )

        if cancel_event is not None and cancel_event.is_set():
            completed = sum(1 for result in results if isinstance(result, str))
            raise AssemblyCancelledError(
                "Context assembly was cancelled.",
                context={"query": query, "completed_documents": completed},
            )

        rendered: list[str] = []
        failed_ids: list[str] = []
        for (summary, _), result in zip(ranked, results):
            if result is None:
                failed_ids.append(summary.id)
            else:
                rendered.append(result)

        if not rendered:
            raise DocumentFetchError(
                f"All {len(failed_ids)} selected documents failed to load.",
                document_ids=failed_ids,
                context={"query": query},
            )

        self.logging.info(
            "Context assembled for query=%r: %d selected, %d included, %d failed.",
            query[:80], len(ranked), len(rendered), len(failed_ids),
            color="green" if not failed_ids else "yellow",
        )
        return ContextBundle(
            query=query,
            text=DOCUMENT_SEPARATOR.join(rendered),
            documents=[summary for summary, _ in ranked],
            failed_document_ids=failed_ids,
        )

    async def do_build_document_context(self, document_id: str) -> str:
        """Build the context of a single document, independent of any query.

        Args:
            document_id (str): The ID of the document.

        Returns:
            str: The rendered header and content of the document.

        Raises:
            ClientRequestError: If the document or its content cannot be fetched.
        """
        document = await self._dms.do_fetch_document_details(document_id)
        lines = await self._walker.do_collect(document.id)
        return self.render_document(document, lines)

    ##########################################
    ############ DOCUMENT FETCH ##############
    ##########################################

    async def _render_selected(
        self,
        document: DocumentDetails,
        sem: asyncio.Semaphore,
        cancel_event: asyncio.Event | None,
    ) -> str | None | object:
        """Walk and render one selected document.

        Returns:
            The rendered document, None if fetching failed, or the cancelled marker.
        """
        async with sem:
            if cancel_event is not None and cancel_event.is_set():
                return _CANCELLED
            try:
                lines = await self._walker.do_collect(document.id)
            except (ClientRequestError, httpx.HTTPError) as exc:
                self.logging.error("Excluding document id=%s ('%s'): %s", document.id, document.title, exc, color="red")
                return None
            self.logging.info("Fetched document id=%s ('%s'): %d lines.", document.id, document.title, len(lines))
            return self.render_document(document, lines)

    ##########################################
    ############### RENDERING ################
    ##########################################

    def render_document(self, document: DocumentDetails, lines: list[str]) -> str:
        """Render a document as metadata header plus content.

        Args:
            document (DocumentDetails): The document.
            lines (list[str]): Its flattened block lines.

        Returns:
            str: The rendered document.
        """
        owner = self._indexer.get_owner(document) or "Not specified"
        created = document.created_time.astimezone(self._tz).strftime(DATE_FORMAT) if document.created_time else "Unknown"

        sections = [
            "\n".join([
                "DOCUMENT METADATA",
                f"Title: {document.title}",
                f"Owner: {owner}",
                f"Created date: {created}",
            ])
        ]

        properties = self.render_properties(document)
        if properties:
            sections.append("\n".join(["DOCUMENT PROPERTIES", *properties]))

        content = "\n".join(lines) if lines else f'This is a document titled "{document.title}". No detailed content available.'
        sections.append(f"DOCUMENT CONTENT\n{content}")
        return "\n\n".join(sections)

    def render_properties(self, document: DocumentDetails) -> list[str]:
        """Render the present properties of a document as "Name: value" lines, sorted by name.
        The title and owner are skipped since the header already shows them."""
        owner_property = self._indexer.get_owner_property()
        lines: list[str] = []
        for name in sorted(document.properties):
            prop = document.properties[name]
            if prop.kind == PropertyKind.TITLE or name == owner_property:
                continue
            value = self._properties.extract(prop)
            if value is not None:
                lines.append(f"{name}: {value}")
        return lines

    def render_fallback(self, query: str, documents: list[DocumentDetails]) -> str:
        """Render the listing returned when no document matches the query."""
        if not documents:
            return f'No documents matched "{query}". No documents are available.'
        shown = documents[: self._fallback_titles]
        lines = [f'No documents matched "{query}". Available documents:']
        lines.extend(f"- {document.title}" for document in shown)
        if len(documents) > len(shown):
            lines.append(f"... and {len(documents) - len(shown)} more")
        return "\n".join(lines)
