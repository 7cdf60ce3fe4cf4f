"""Document property → plain text value."""

from typing import Callable

from shared.clients.dms.models.Property import PropertyKind, PropertyValue
from shared.extract.rich_text import join_rich_text

LIST_SEPARATOR = ", "


class PropertyValueExtractor:
    """Renders a document property as plain text.

    extract() returns None when the property should be omitted from the
    output, which is distinct from a present but falsy value such as an
    unchecked checkbox ("No"). Formula and rollup values recurse into their
    inner value. Relations only report how many items they link.
    """

    def __init__(self) -> None:
        self._handlers: dict[PropertyKind, Callable[[PropertyValue], str | None]] = {
            PropertyKind.TITLE: self._extract_rich_text,
            PropertyKind.RICH_TEXT: self._extract_rich_text,
            PropertyKind.NUMBER: self._extract_number,
            PropertyKind.SELECT: self._extract_text,
            PropertyKind.STATUS: self._extract_text,
            PropertyKind.MULTI_SELECT: self._extract_names,
            PropertyKind.PEOPLE: self._extract_names,
            PropertyKind.FILES: self._extract_names,
            PropertyKind.DATE: self._extract_date,
            PropertyKind.CHECKBOX: self._extract_boolean,
            PropertyKind.BOOLEAN: self._extract_boolean,
            PropertyKind.URL: self._extract_text,
            PropertyKind.EMAIL: self._extract_text,
            PropertyKind.PHONE_NUMBER: self._extract_text,
            PropertyKind.STRING: self._extract_text,
            PropertyKind.CREATED_TIME: self._extract_text,
            PropertyKind.LAST_EDITED_TIME: self._extract_text,
            PropertyKind.CREATED_BY: self._extract_text,
            PropertyKind.LAST_EDITED_BY: self._extract_text,
            PropertyKind.FORMULA: self._extract_inner,
            PropertyKind.ROLLUP: self._extract_rollup,
            PropertyKind.ARRAY: self._extract_items,
            PropertyKind.RELATION: self._extract_relation,
            PropertyKind.UNKNOWN: self._extract_absent,
        }
        missing = set(PropertyKind) - set(self._handlers)
        if missing:
            raise RuntimeError(f"No value handler for property kinds: {sorted(kind.value for kind in missing)}")

    def extract(self, prop: PropertyValue | None) -> str | None:
        """Render a property value.

        Args:
            prop (PropertyValue | None): The property to render.

        Returns:
            str | None: The rendered value, or None if the property is absent.
        """
        if prop is None:
            return None
        return self._handlers[prop.kind](prop)

    ##########################################
    ############### HANDLERS #################
    ##########################################

    def _extract_absent(self, prop: PropertyValue) -> str | None:
        return None

    def _extract_rich_text(self, prop: PropertyValue) -> str | None:
        return join_rich_text(prop.rich_text) or None

    def _extract_text(self, prop: PropertyValue) -> str | None:
        return prop.text or None

    def _extract_names(self, prop: PropertyValue) -> str | None:
        return LIST_SEPARATOR.join(prop.names or []) or None

    def _extract_number(self, prop: PropertyValue) -> str | None:
        if prop.number is None:
            return None
        number = prop.number
        if isinstance(number, float) and number.is_integer():
            number = int(number)
        return str(number)

    def _extract_date(self, prop: PropertyValue) -> str | None:
        if not prop.date_start:
            return None
        end = f" to {prop.date_end}" if prop.date_end else ""
        return f"{prop.date_start}{end}"

    def _extract_boolean(self, prop: PropertyValue) -> str | None:
        if prop.boolean is None:
            return None
        return "Yes" if prop.boolean else "No"

    def _extract_relation(self, prop: PropertyValue) -> str | None:
        if not prop.relation_count:
            return None
        return f"{prop.relation_count} linked items"

    def _extract_inner(self, prop: PropertyValue) -> str | None:
        return self.extract(prop.inner)

    def _extract_rollup(self, prop: PropertyValue) -> str | None:
        if prop.items is not None:
            return self._extract_items(prop)
        return self.extract(prop.inner)

    def _extract_items(self, prop: PropertyValue) -> str | None:
        values = [self.extract(item) for item in prop.items or []]
        return LIST_SEPARATOR.join(value for value in values if value) or None
