"""Generic rich text model, backend-independent."""

from typing import Any

from pydantic import BaseModel


class RichTextSpan(BaseModel):
    """
    A single styled run of text. Only plain_text carries meaning for context
    assembly; annotations are kept opaque.
    """
    plain_text: str = ""
    href: str | None = None
    annotations: dict[str, Any] | None = None
