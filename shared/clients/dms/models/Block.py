"""Generic block model, backend-independent."""

from enum import Enum

from pydantic import BaseModel

from shared.clients.dms.models.RichText import RichTextSpan


class BlockKind(str, Enum):
    """
    Closed set of block kinds the extractor knows about. Anything the backend
    reports that is not listed here maps to UNKNOWN.
    """
    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    QUOTE = "quote"
    CALLOUT = "callout"
    CODE = "code"
    EQUATION = "equation"
    TEMPLATE = "template"
    TABLE = "table"
    TABLE_ROW = "table_row"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"
    PDF = "pdf"
    AUDIO = "audio"
    BOOKMARK = "bookmark"
    EMBED = "embed"
    LINK_PREVIEW = "link_preview"
    DIVIDER = "divider"
    TABLE_OF_CONTENTS = "table_of_contents"
    BREADCRUMB = "breadcrumb"
    UNSUPPORTED = "unsupported"
    SYNCED_BLOCK = "synced_block"
    TRANSCRIPTION = "transcription"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw_type: str | None) -> "BlockKind":
        try:
            return cls(raw_type)
        except ValueError:
            return cls.UNKNOWN


class Block(BaseModel):
    """
    One node of a document's content tree.

    Children are never embedded: a block with has_children=True owns child
    blocks that have to be listed separately by id.

    Only the fields relevant to the block's kind are populated; rich_text is
    None when the backend sent no rich text payload at all.
    """
    engine: str
    id: str
    kind: BlockKind
    raw_type: str
    has_children: bool = False

    rich_text: list[RichTextSpan] | None = None
    caption: list[RichTextSpan] | None = None
    cells: list[list[RichTextSpan]] | None = None
    language: str | None = None
    checked: bool | None = None
    expression: str | None = None
    icon: str | None = None
    url: str | None = None
    name: str | None = None


class BlocksListResponse(BaseModel):
    """
    Represents one page of child blocks, as returned by a DMS client.
    """
    engine: str
    blocks: list[Block] = []
    nextCursor: str | None = None
    hasMore: bool = False
