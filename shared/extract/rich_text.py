"""Plain text rendering of rich text spans."""

from collections.abc import Iterable

from shared.clients.dms.models.RichText import RichTextSpan


def join_rich_text(spans: Iterable[RichTextSpan] | None) -> str:
    """Concatenate the plain text of all spans, preserving their order.

    Args:
        spans (Iterable[RichTextSpan] | None): The spans to join. None is treated as empty.

    Returns:
        str: The joined plain text.
    """
    if not spans:
        return ""
    return "".join(span.plain_text for span in spans)
