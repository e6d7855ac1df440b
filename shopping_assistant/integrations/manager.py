"""Catalog manager - routes catalog requests to the adapter for each source."""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Union, get_args

from ..cache.data_cache import DataCache, get_catalog_cache_key, get_source_cache_key
from ..config import Config
from ..database.models import ConnectionTestResult, FetchResult, Product, SchemaMapping, SourceStats
from ..errors import AdapterError
from .base import CatalogAdapter
from .csv.provider import CsvAdapter
from .mongodb.provider import MongoDBAdapter
from .rest.provider import RestApiAdapter
from .shopify.provider import ShopifyAdapter
from .sources import CatalogSource, SourceStatus, SourceType, load_sources_file, parse_connection_config
from .sql.provider import SqlDatabaseAdapter
from .woocommerce.provider import WooCommerceAdapter

logger = logging.getLogger(__name__)

# Stats walk stops once the offset passes this
STATS_MAX_OFFSET = 10000

# Sources that still take part in fetches; "error" ones are retried
_FETCHABLE = ("active", "error")

_ADAPTERS: Dict[SourceType, Callable[[Config], CatalogAdapter]] = {
    SourceType.SHOPIFY: ShopifyAdapter,
    SourceType.WOOCOMMERCE: WooCommerceAdapter,
    # BigCommerce and Magento expose plain REST APIs
    SourceType.BIGCOMMERCE: RestApiAdapter,
    SourceType.MAGENTO: RestApiAdapter,
    SourceType.API_REST: RestApiAdapter,
    SourceType.API_CUSTOM: RestApiAdapter,
    SourceType.CSV: CsvAdapter,
    SourceType.DATABASE_POSTGRESQL: lambda settings: SqlDatabaseAdapter("postgresql", settings),
    SourceType.DATABASE_MYSQL: lambda settings: SqlDatabaseAdapter("mysql", settings),
    SourceType.DATABASE_MONGODB: MongoDBAdapter,
}


def get_adapter(source_type: Union[SourceType, str], settings: Optional[Config] = None) -> CatalogAdapter:
    """Build the adapter for a source type; unknown types raise ValueError."""
    try:
        factory = _ADAPTERS[SourceType(source_type)]
    except ValueError:
        raise ValueError(f"Unsupported source type: {source_type}") from None
    return factory(settings or Config())


def _next_offset(result: FetchResult, offset: int) -> int:
    # Cursor-paginated sources hand back where the next page starts
    if result.next_cursor and result.next_cursor.isdecimal():
        return int(result.next_cursor)
    return offset + len(result.products)


def iter_pages(adapter: CatalogAdapter, config: Any, schema_mapping: Optional[SchemaMapping],
               page_size: int, max_offset: Optional[int] = None) -> Iterator[FetchResult]:
    """Walk a source page by page until it reports no more data."""
    offset = 0
    while True:
        result = adapter.fetch_products(config, schema_mapping, page_size, offset)
        yield result
        if not result.has_more or not result.products:
            return
        offset = _next_offset(result, offset)
        if max_offset is not None and offset > max_offset:
            return


class CatalogManager:
    """Holds the configured catalog sources and fetches products through their adapters."""

    def __init__(self, cache: DataCache, config: Optional[Config] = None):
        self.config = config or Config()
        self.cache = cache
        self._sources: Dict[int, CatalogSource] = {}

        if self.config.CATALOG_SOURCES_FILE:
            self.load_sources(self.config.CATALOG_SOURCES_FILE)

    def get_adapter(self, source_type: Union[SourceType, str]) -> CatalogAdapter:
        return get_adapter(source_type, self.config)

    def register_source(self, source: Union[CatalogSource, Dict[str, Any]]) -> CatalogSource:
        if not isinstance(source, CatalogSource):
            source = CatalogSource.model_validate(source)
        self._sources[source.id] = source
        self.cache.invalidate(get_catalog_cache_key(source.shop_domain))
        logger.info(f"Registered {source.source_type.value} source {source.id} for {source.shop_domain}")
        return source

    def set_source_status(self, source_id: int, status: SourceStatus) -> CatalogSource:
        """Activate, deactivate or reset a registered source."""
        if status not in get_args(SourceStatus):
            raise ValueError(f"Invalid source status: {status}")
        source = self._sources.get(source_id)
        if source is None:
            raise LookupError(f"Unknown catalog source: {source_id}")
        source.status = status
        if status == "active":
            source.last_sync_error = None
        self.cache.invalidate(get_catalog_cache_key(source.shop_domain))
        return source

    def load_sources(self, path: str) -> List[CatalogSource]:
        return [self.register_source(source) for source in load_sources_file(path)]

    def get_sources(self, shop_domain: Optional[str] = None, active_only: bool = False) -> List[CatalogSource]:
        """Sources for a shop; ``active_only`` drops inactive ones but keeps failed ones for retry."""
        sources = list(self._sources.values())
        if shop_domain is not None:
            sources = [s for s in sources if s.shop_domain == shop_domain]
        if active_only:
            sources = [s for s in sources if s.status in _FETCHABLE]
        return sources

    @staticmethod
    def _mark_failed(source: CatalogSource, error: Exception):
        source.status = "error"
        source.last_sync_error = str(error)

    @staticmethod
    def _mark_synced(source: CatalogSource):
        source.status = "active"
        source.last_sync_error = None
        source.last_sync_at = datetime.now(timezone.utc)

    def _find_source(self, shop_domain: str, source_id: Optional[int]) -> CatalogSource:
        for source in self.get_sources(shop_domain, active_only=True):
            if source_id is None or source.id == source_id:
                return source
        raise LookupError("No active catalog source found")

    def fetch_products_from_source(self, shop_domain: str, source_id: Optional[int] = None,
                                   limit: int = 100, offset: int = 0, use_cache: bool = True,
                                   cache_ttl: Optional[int] = None) -> FetchResult:
        """Fetch one page from a shop's source (the first active one when no id is given)."""
        source = self._find_source(shop_domain, source_id)
        cache_key = get_source_cache_key(shop_domain, source.id, limit, offset)
        caching = use_cache and source.cache_enabled

        if caching:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {cache_key}")
                return cached

        adapter = self.get_adapter(source.source_type)
        try:
            result = adapter.fetch_products(source.connection_config, source.schema_mapping, limit, offset)
        except AdapterError as e:
            logger.error(f"Catalog fetch failed for source {source.id}: {e}")
            self._mark_failed(source, e)
            raise

        self._mark_synced(source)

        if caching:
            self.cache.set(cache_key, result, source.cache_ttl_seconds if cache_ttl is None else cache_ttl)
        return result

    def get_all_products(self, shop_domain: str, use_cache: bool = True) -> List[Product]:
        """Every product from every active source, de-duplicated by id.

        A failing source is logged, marked and skipped; an unreachable catalog
        yields an empty list, never an error. A partial catalog is not cached.
        """
        cache_key = get_catalog_cache_key(shop_domain)
        if use_cache:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        limit = self.config.MAX_CATALOG_PRODUCTS
        products: List[Product] = []
        seen_ids = set()
        failed = False

        for source in self.get_sources(shop_domain, active_only=True):
            if len(products) >= limit:
                break
            adapter = self.get_adapter(source.source_type)
            try:
                for page in iter_pages(adapter, source.connection_config, source.schema_mapping,
                                       self.config.CATALOG_PAGE_SIZE):
                    for product in page.products:
                        if product.id not in seen_ids:
                            seen_ids.add(product.id)
                            products.append(product)
                    if len(products) >= limit:
                        logger.warning(f"Catalog for {shop_domain} truncated at {limit} products")
                        break
            except Exception as e:
                logger.error(f"Failed to fetch from source {source.id}: {e}")
                self._mark_failed(source, e)
                failed = True
                continue
            self._mark_synced(source)

        products = products[:limit]
        logger.info(f"Loaded {len(products)} products for {shop_domain}")
        if use_cache and not failed:
            self.cache.set(cache_key, products, self.config.CATALOG_CACHE_TTL_SECONDS)
        return products

    def test_catalog_source(self, source_type: Union[SourceType, str], connection_config: Any) -> ConnectionTestResult:
        try:
            if isinstance(connection_config, dict):
                connection_config = parse_connection_config(source_type, connection_config)
            return self.get_adapter(source_type).test_connection(connection_config)
        except Exception as e:
            return ConnectionTestResult(success=False, error=str(e))

    def get_source_stats(self, source_type: Union[SourceType, str], connection_config: Any,
                         schema_mapping: Optional[SchemaMapping] = None) -> SourceStats:
        """Product and distinct category counts for a source. Never raises."""
        try:
            if isinstance(connection_config, dict):
                connection_config = parse_connection_config(source_type, connection_config)
            adapter = self.get_adapter(source_type)
        except Exception as e:
            logger.error(f"Failed to get source stats: {e}")
            return SourceStats()

        product_count = adapter.get_product_count(connection_config)
        if not product_count:
            try:
                product_count = adapter.fetch_products(connection_config, schema_mapping, 1, 0).total
            except Exception as e:
                logger.warning(f"Failed to get product count: {e}")

        categories = set()
        try:
            for page in iter_pages(adapter, connection_config, schema_mapping,
                                   self.config.CATALOG_PAGE_SIZE, max_offset=STATS_MAX_OFFSET):
                categories.update(p.category for p in page.products if p.category)
        except Exception as e:
            logger.warning(f"Failed to get category count: {e}")

        return SourceStats(product_count=product_count or 0, category_count=len(categories))
