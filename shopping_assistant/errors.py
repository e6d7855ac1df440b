"""Error taxonomy for catalog sources.

Adapters raise one typed failure per call, always carrying the adapter name.
``PartialCountError`` is the exception: adapters log it and drop ``total``
instead of failing the fetch.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for all catalog core errors."""


class AdapterError(CatalogError):
    """A source adapter failed; ``adapter`` names the adapter that raised."""

    def __init__(self, adapter: str, message: str, cause: Optional[BaseException] = None):
        self.adapter = adapter
        self.cause = cause
        super().__init__(f"Failed to fetch products from {adapter}: {message}")


class CatalogConnectionError(AdapterError):
    """Network or database unreachable, or the request timed out."""


class AuthenticationError(AdapterError):
    """The source rejected the configured credentials or token."""


class ParseError(AdapterError):
    """Malformed CSV, JSON or row shape returned by the source."""


class MappingError(CatalogError):
    """A required canonical field could not be resolved from any alias."""

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Could not resolve required field '{field}'")


class PartialCountError(CatalogError):
    """The total-count query failed while the primary fetch succeeded."""

    def __init__(self, adapter: str, cause: Optional[BaseException] = None):
        self.adapter = adapter
        self.cause = cause
        super().__init__(f"{adapter} count query failed: {cause}")
