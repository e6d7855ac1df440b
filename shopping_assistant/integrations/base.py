"""Capability contract every catalog adapter implements."""

from typing import Any, Optional, Protocol, runtime_checkable

from ..database.models import ConnectionTestResult, FetchResult, SchemaMapping


@runtime_checkable
class CatalogAdapter(Protocol):
    """Fetch/test/count operations for one kind of catalog source.

    Adapters hold no per-source state; every call receives its own config.
    """

    name: str

    def fetch_products(
        self,
        config: Any,
        schema_mapping: Optional[SchemaMapping] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> FetchResult:
        """Fetch one page of products. Raises an ``AdapterError`` subclass."""
        ...

    def test_connection(self, config: Any) -> ConnectionTestResult:
        """Check the source is reachable with the given credentials. Never raises."""
        ...

    def get_product_count(self, config: Any) -> Optional[int]:
        """Total product count if the source exposes one, else None. Never raises."""
        ...
