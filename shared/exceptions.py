"""Error taxonomy for the context bridge."""

from typing import Any


class ContextBridgeError(Exception):
    """Base exception for the context bridge."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConfigurationError(ContextBridgeError, ValueError):
    """A required setting (credential, identifier, engine name) is missing or invalid.

    Raised before any remote call is made.
    """

    pass


class ClientRequestError(ContextBridgeError):
    """A remote collaborator answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        code: str | None = None,
        url: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context)
        self.status_code = status_code
        self.code = code
        self.url = url


class SkippableBlockError(ClientRequestError):
    """The document source refused to traverse a single block.

    The block walker drops the affected child branch. Raised for a
    document's root it fails that document only.
    """

    UNSUPPORTED_MARKER = "not supported via the API"

    @property
    def unsupported_for_traversal(self) -> bool:
        """True when the block kind itself cannot be listed through the API."""
        return self.UNSUPPORTED_MARKER in self.message


class DocumentFetchError(ContextBridgeError):
    """Content for the selected documents could not be fetched."""

    def __init__(
        self,
        message: str,
        document_ids: list[str],
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context)
        self.document_ids = document_ids


class AssemblyCancelledError(ContextBridgeError):
    """Context assembly was cancelled between two documents."""

    pass
