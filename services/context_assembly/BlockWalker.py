"""Depth-first, paginated flattening of a block tree into text lines."""

from collections.abc import AsyncIterator

from shared.clients.dms.DMSClientInterface import DMSClientInterface
from shared.exceptions import SkippableBlockError
from shared.extract.BlockTextExtractor import BlockTextExtractor
from shared.helper.HelperConfig import HelperConfig


class BlockWalker:
    """Walks the children of a block, parent before children, in sibling order.

    Pages of children are fetched strictly one after another because every
    request needs the previous page's cursor. A child branch the backend
    refuses to traverse is dropped as a whole while its siblings continue.
    If the backend reports that the current node's kind is not supported via
    its API, paging of that node stops and the lines produced so far are kept.
    Any other error propagates.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        dms_client: DMSClientInterface,
        extractor: BlockTextExtractor | None = None,
        page_size: int | None = None,
        indent: str | None = None,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._dms = dms_client
        self._extractor = extractor or BlockTextExtractor()
        if page_size is None:
            page_size = helper_config.get_number_val("CONTEXT_BLOCK_PAGE_SIZE", default=100)
        self._page_size = dms_client.clamp_page_size(page_size)
        if indent is None:
            indent = " " * int(helper_config.get_number_val("CONTEXT_INDENT_WIDTH", default=0))
        self._indent = indent

    async def walk(self, block_id: str, depth: int = 0) -> AsyncIterator[str]:
        """Yield one line per non-empty block below block_id.

        Args:
            block_id (str): The block (or document) whose children are walked.
            depth (int): Nesting depth of block_id's children, used for indentation.

        Yields:
            str: The extracted text of each block, in depth-first order.

        Raises:
            SkippableBlockError: If block_id itself cannot be traversed for a reason other than an unsupported kind.
            ClientRequestError: If the backend fails.
        """
        prefix = self._indent * depth
        cursor: str | None = None
        while True:
            try:
                page = await self._dms.do_fetch_block_children(block_id, cursor=cursor, page_size=self._page_size)
            except SkippableBlockError as e:
                if not e.unsupported_for_traversal:
                    raise
                self.logging.warning("Stopped paging children of block %s: %s", block_id, e.message, color="magenta")
                return

            for block in page.blocks:
                if self._extractor.is_skipped(block):
                    self.logging.debug("Dropping text of %s block %s.", block.raw_type, block.id)
                else:
                    text = self._extractor.extract(block)
                    if text:
                        yield prefix + text

                if not block.has_children:
                    continue
                # a branch is kept only if it can be walked completely
                try:
                    branch = [line async for line in self.walk(block.id, depth + 1)]
                except SkippableBlockError as e:
                    self.logging.warning(
                        "Skipping child branch of %s block %s: %s", block.raw_type, block.id, e.message, color="magenta"
                    )
                    continue
                for line in branch:
                    yield line

            cursor = page.nextCursor if page.hasMore else None
            if not cursor:
                return

    async def do_collect(self, block_id: str) -> list[str]:
        """Walk block_id completely and return all lines.

        Args:
            block_id (str): The block (or document) whose children are walked.

        Returns:
            list[str]: All extracted lines, in depth-first order.
        """
        return [line async for line in self.walk(block_id)]
