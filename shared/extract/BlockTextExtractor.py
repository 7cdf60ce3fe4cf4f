"""Block → plain text line."""

from typing import Callable

from shared.clients.dms.models.Block import Block, BlockKind
from shared.extract.rich_text import join_rich_text

DEFAULT_CODE_LANGUAGE = "text"
DEFAULT_CALLOUT_ICON = "💡"
TABLE_CELL_SEPARATOR = " | "


class BlockTextExtractor:
    """Turns a single block into one line of plain text.

    Every BlockKind has exactly one handler. Handlers never raise: a block
    without the payload its kind needs yields an empty string. Kinds in
    SKIPPED_KINDS are dropped on purpose, kinds in CONTAINER_KINDS carry no
    text themselves but their children are still walked.
    """

    SKIPPED_KINDS = frozenset({
        BlockKind.UNSUPPORTED,
        BlockKind.SYNCED_BLOCK,
        BlockKind.TRANSCRIPTION,
    })

    CONTAINER_KINDS = frozenset({
        BlockKind.TABLE,
        BlockKind.COLUMN_LIST,
        BlockKind.COLUMN,
        BlockKind.CHILD_PAGE,
        BlockKind.CHILD_DATABASE,
        BlockKind.UNKNOWN,
    })

    PREFIXES = {
        BlockKind.PARAGRAPH: "",
        BlockKind.NUMBERED_LIST_ITEM: "",
        BlockKind.TEMPLATE: "",
        BlockKind.BULLETED_LIST_ITEM: "• ",
        BlockKind.TOGGLE: "▶ ",
        BlockKind.QUOTE: "> ",
        BlockKind.HEADING_1: "# ",
        BlockKind.HEADING_2: "## ",
        BlockKind.HEADING_3: "### ",
    }

    LITERALS = {
        BlockKind.DIVIDER: "---",
        BlockKind.TABLE_OF_CONTENTS: "[Table of Contents]",
        BlockKind.BREADCRUMB: "[Breadcrumb]",
    }

    def __init__(self) -> None:
        self._handlers: dict[BlockKind, Callable[[Block], str]] = {
            BlockKind.CODE: self._extract_code,
            BlockKind.EQUATION: self._extract_equation,
            BlockKind.TABLE_ROW: self._extract_table_row,
            BlockKind.TO_DO: self._extract_to_do,
            BlockKind.CALLOUT: self._extract_callout,
            BlockKind.IMAGE: self._extract_image,
            BlockKind.VIDEO: self._extract_video,
            BlockKind.FILE: self._extract_file,
            BlockKind.PDF: self._extract_pdf,
            BlockKind.AUDIO: self._extract_audio,
            BlockKind.BOOKMARK: self._extract_bookmark,
            BlockKind.EMBED: self._extract_embed,
            BlockKind.LINK_PREVIEW: self._extract_link_preview,
        }
        for kind in self.PREFIXES:
            self._handlers[kind] = self._extract_prefixed
        for kind in self.LITERALS:
            self._handlers[kind] = self._extract_literal
        for kind in self.SKIPPED_KINDS | self.CONTAINER_KINDS:
            self._handlers[kind] = self._extract_nothing

        missing = set(BlockKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No text handler for block kinds: {sorted(kind.value for kind in missing)}")

    ##########################################
    ################ PUBLIC ##################
    ##########################################

    def extract(self, block: Block) -> str:
        """Render a block as plain text.

        Args:
            block (Block): The block to render.

        Returns:
            str: The rendered line, or "" if the block carries no text.
        """
        return self._handlers[block.kind](block)

    def is_skipped(self, block: Block) -> bool:
        """Whether the block's kind is intentionally dropped from the output."""
        return block.kind in self.SKIPPED_KINDS

    ##########################################
    ############### HANDLERS #################
    ##########################################

    def _extract_nothing(self, block: Block) -> str:
        return ""

    def _extract_literal(self, block: Block) -> str:
        return self.LITERALS[block.kind]

    def _extract_prefixed(self, block: Block) -> str:
        if block.rich_text is None:
            return ""
        return self.PREFIXES[block.kind] + join_rich_text(block.rich_text)

    def _extract_code(self, block: Block) -> str:
        if block.rich_text is None:
            return ""
        language = block.language or DEFAULT_CODE_LANGUAGE
        return f"```{language}\n{join_rich_text(block.rich_text)}\n```"

    def _extract_equation(self, block: Block) -> str:
        return f"Equation: {block.expression or ''}"

    def _extract_table_row(self, block: Block) -> str:
        return TABLE_CELL_SEPARATOR.join(join_rich_text(cell) for cell in block.cells or [])

    def _extract_to_do(self, block: Block) -> str:
        if block.rich_text is None:
            return ""
        marker = "[x]" if block.checked else "[ ]"
        return f"{marker} {join_rich_text(block.rich_text)}"

    def _extract_callout(self, block: Block) -> str:
        if block.rich_text is None:
            return ""
        icon = block.icon or DEFAULT_CALLOUT_ICON
        return f"{icon} {join_rich_text(block.rich_text)}"

    ############### MEDIA ####################

    def _extract_image(self, block: Block) -> str:
        caption = join_rich_text(block.caption)
        return f"[Image: {caption}]" if caption else f"[Image: {block.url or ''}]"

    def _extract_video(self, block: Block) -> str:
        caption = join_rich_text(block.caption)
        return f"[Video: {caption}]" if caption else f"[Video: {block.url or ''}]"

    def _extract_file(self, block: Block) -> str:
        caption = join_rich_text(block.caption)
        name = block.name or "file"
        return f"[File: {name} - {caption}]" if caption else f"[File: {name}]"

    def _extract_pdf(self, block: Block) -> str:
        caption = join_rich_text(block.caption)
        return f"[PDF: {caption}]" if caption else "[PDF]"

    def _extract_audio(self, block: Block) -> str:
        caption = join_rich_text(block.caption)
        return f"[Audio: {caption}]" if caption else "[Audio]"

    def _extract_bookmark(self, block: Block) -> str:
        caption = join_rich_text(block.caption)
        url = block.url or ""
        return f"[Bookmark: {caption} - {url}]" if caption else f"[Bookmark: {url}]"

    def _extract_embed(self, block: Block) -> str:
        return f"[Embed: {block.url or ''}]"

    def _extract_link_preview(self, block: Block) -> str:
        return f"[Link: {block.url or ''}]"
