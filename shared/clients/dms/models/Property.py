"""Generic document property model, backend-independent."""

from enum import Enum

from pydantic import BaseModel

from shared.clients.dms.models.RichText import RichTextSpan


class PropertyKind(str, Enum):
    """
    Closed set of property kinds. STRING, BOOLEAN and ARRAY only occur as the
    inner value of a formula or rollup.
    """
    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    STATUS = "status"
    DATE = "date"
    PEOPLE = "people"
    FILES = "files"
    CHECKBOX = "checkbox"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    FORMULA = "formula"
    RELATION = "relation"
    ROLLUP = "rollup"
    CREATED_TIME = "created_time"
    CREATED_BY = "created_by"
    LAST_EDITED_TIME = "last_edited_time"
    LAST_EDITED_BY = "last_edited_by"
    STRING = "string"
    BOOLEAN = "boolean"
    ARRAY = "array"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw_type: str | None) -> "PropertyKind":
        try:
            return cls(raw_type)
        except ValueError:
            return cls.UNKNOWN


class PropertyValue(BaseModel):
    """
    A typed, named value attached to a document.

    Which field carries the value depends on kind:
        title, rich_text                      -> rich_text
        number                                -> number
        select, status, url, email, phone,
        string, *_time, *_by                  -> text
        multi_select, people, files           -> names
        date                                  -> date_start / date_end
        checkbox, boolean                     -> boolean
        relation                              -> relation_count
        formula, rollup (scalar)              -> inner
        rollup (array)                        -> items
    """
    name: str
    kind: PropertyKind
    raw_type: str

    rich_text: list[RichTextSpan] | None = None
    number: int | float | None = None
    text: str | None = None
    names: list[str] | None = None
    date_start: str | None = None
    date_end: str | None = None
    boolean: bool | None = None
    relation_count: int | None = None
    inner: "PropertyValue | None" = None
    items: "list[PropertyValue] | None" = None


PropertyValue.model_rebuild()
