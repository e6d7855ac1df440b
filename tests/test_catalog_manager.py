import json

import pytest

from shopping_assistant.cache.data_cache import DataCache
from shopping_assistant.config import Config
from shopping_assistant.database.models import ConnectionTestResult, FetchResult, Product
from shopping_assistant.errors import CatalogConnectionError
from shopping_assistant.integrations import CatalogAdapter, manager
from shopping_assistant.integrations.csv import CsvAdapter
from shopping_assistant.integrations.manager import CatalogManager, get_adapter, iter_pages
from shopping_assistant.integrations.sources import SourceType
from shopping_assistant.integrations.sql import SqlDatabaseAdapter

SHOP = "demo.example"


class FakeAdapter:
    """Serves pre-built pages keyed by offset and records each call."""

    name = "Fake"

    def __init__(self, pages=None, error=None, count=None):
        self.pages = pages or {}
        self.error = error
        self.count = count
        self.calls = []

    def fetch_products(self, config, schema_mapping=None, limit=100, offset=0):
        self.calls.append((limit, offset))
        if self.error:
            raise self.error
        return self.pages.get(offset, FetchResult())

    def test_connection(self, config):
        return ConnectionTestResult(success=self.error is None)

    def get_product_count(self, config):
        return self.count


def products(*ids, category=""):
    return [Product(id=str(i), title=f"Item {i}", category=category) for i in ids]


def csv_source(source_id, content, **fields):
    return {
        "id": source_id,
        "shopDomain": SHOP,
        "sourceType": "csv",
        "connectionConfig": {"csvContent": content},
        **fields,
    }


def rest_source(source_id, **fields):
    return {
        "id": source_id,
        "shopDomain": SHOP,
        "sourceType": "api_rest",
        "connectionConfig": {"url": f"https://api.example/{source_id}"},
        **fields,
    }


@pytest.fixture
def catalog():
    return CatalogManager(DataCache(Config()), Config(CATALOG_PAGE_SIZE=2))


@pytest.fixture
def use_adapter(monkeypatch):
    def install(adapter, source_type=SourceType.API_REST):
        monkeypatch.setitem(manager._ADAPTERS, source_type, lambda settings: adapter)
        return adapter
    return install


def test_adapter_factory():
    assert isinstance(get_adapter("csv"), CsvAdapter)
    assert get_adapter(SourceType.DATABASE_MYSQL).name == "MySQL"
    assert isinstance(get_adapter("database_postgresql"), SqlDatabaseAdapter)
    with pytest.raises(ValueError):
        get_adapter("ftp")


def test_source_lookup(catalog):
    catalog.register_source(csv_source(1, "id\n1", status="inactive"))
    catalog.register_source(csv_source(2, "id,title\n7,Scarf"))
    catalog.register_source({**csv_source(3, "id\n9"), "shopDomain": "other.example"})

    assert [s.id for s in catalog.get_sources(SHOP)] == [1, 2]
    assert [s.id for s in catalog.get_sources(SHOP, active_only=True)] == [2]

    result = catalog.fetch_products_from_source(SHOP)
    assert [p.title for p in result.products] == ["Scarf"]

    with pytest.raises(LookupError):
        catalog.fetch_products_from_source(SHOP, source_id=1)
    with pytest.raises(LookupError):
        catalog.fetch_products_from_source("nobody.example")


def test_source_page_cached(catalog, use_adapter):
    adapter = use_adapter(FakeAdapter({0: FetchResult(products=products(1, 2))}))
    catalog.register_source(rest_source(1))

    first = catalog.fetch_products_from_source(SHOP, limit=10)
    second = catalog.fetch_products_from_source(SHOP, limit=10)
    assert second is first
    assert len(adapter.calls) == 1

    catalog.fetch_products_from_source(SHOP, limit=10, use_cache=False)
    assert len(adapter.calls) == 2


def test_cache_disabled_per_source(catalog, use_adapter):
    adapter = use_adapter(FakeAdapter({0: FetchResult(products=products(1))}))
    catalog.register_source(rest_source(1, cacheEnabled=False))
    catalog.fetch_products_from_source(SHOP)
    catalog.fetch_products_from_source(SHOP)
    assert len(adapter.calls) == 2


def test_failed_fetch_marks_source(catalog, use_adapter):
    use_adapter(FakeAdapter(error=CatalogConnectionError("API", "HTTP 502: Bad Gateway")))
    source = catalog.register_source(rest_source(1))
    with pytest.raises(CatalogConnectionError):
        catalog.fetch_products_from_source(SHOP)
    assert source.status == "error"
    assert "HTTP 502" in source.last_sync_error


def test_failed_source_is_retried(catalog, use_adapter):
    adapter = use_adapter(FakeAdapter(error=CatalogConnectionError("API", "connection refused")))
    source = catalog.register_source(rest_source(1))
    assert catalog.get_all_products(SHOP) == []
    assert source.status == "error"

    adapter.error = None
    adapter.pages = {0: FetchResult(products=products(1))}
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["1"]
    assert source.status == "active"
    assert source.last_sync_error is None
    assert source.last_sync_at is not None
    assert catalog.fetch_products_from_source(SHOP).products[0].id == "1"


def test_source_status_changes(catalog):
    catalog.register_source(csv_source(1, "id,title\n1,Mug"))
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["1"]

    catalog.set_source_status(1, "inactive")
    assert catalog.get_all_products(SHOP) == []
    catalog.set_source_status(1, "active")
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["1"]

    with pytest.raises(LookupError):
        catalog.set_source_status(99, "active")
    with pytest.raises(ValueError):
        catalog.set_source_status(1, "paused")


def test_all_products_deduplicated_across_sources(catalog):
    catalog.register_source(csv_source(1, "id,title\n1,Hat\n2,Scarf\n3,Glove"))
    catalog.register_source(csv_source(2, "id,title\n3,Glove copy\n4,Boot"))
    result = catalog.get_all_products(SHOP)
    assert [p.id for p in result] == ["1", "2", "3", "4"]
    assert result[2].title == "Glove"


def test_failing_source_skipped(catalog, use_adapter):
    use_adapter(FakeAdapter(error=CatalogConnectionError("API", "down")))
    catalog.register_source(rest_source(1))
    catalog.register_source(csv_source(2, "id,title\n5,Belt"))
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["5"]


def test_unreachable_catalog_is_empty(catalog, use_adapter):
    use_adapter(FakeAdapter(error=CatalogConnectionError("API", "down")))
    catalog.register_source(rest_source(1))
    assert catalog.get_all_products(SHOP) == []


def test_partial_catalog_not_cached(catalog, use_adapter):
    adapter = use_adapter(FakeAdapter(error=CatalogConnectionError("API", "down")))
    catalog.register_source(rest_source(1))
    catalog.register_source(csv_source(2, "id,title\n5,Belt"))
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["5"]

    adapter.error = None
    adapter.pages = {0: FetchResult(products=products(1))}
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["1", "5"]


def test_new_source_refreshes_catalog(catalog):
    assert catalog.get_all_products(SHOP) == []
    catalog.register_source(csv_source(1, "id,title\n1,Mug\n2,Cup"))
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["1", "2"]


def test_all_products_cached(catalog, use_adapter):
    adapter = use_adapter(FakeAdapter({0: FetchResult(products=products(1))}))
    catalog.register_source(rest_source(1))
    first = catalog.get_all_products(SHOP)
    assert catalog.get_all_products(SHOP) is first
    assert len(adapter.calls) == 1
    catalog.get_all_products(SHOP, use_cache=False)
    assert len(adapter.calls) == 2


def test_cursor_pagination_followed(catalog, use_adapter):
    adapter = use_adapter(FakeAdapter({
        0: FetchResult(products=products(101, 102), has_more=True, next_cursor="102"),
        102: FetchResult(products=products(103), has_more=False, next_cursor="103"),
    }))
    catalog.register_source(rest_source(1))
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["101", "102", "103"]
    assert [offset for _, offset in adapter.calls] == [0, 102]


def test_catalog_capped():
    catalog = CatalogManager(DataCache(Config()), Config(CATALOG_PAGE_SIZE=10, MAX_CATALOG_PRODUCTS=5))
    rows = "\n".join(f"{i},Item {i}" for i in range(1, 21))
    catalog.register_source(csv_source(1, f"id,title\n{rows}"))
    catalog.register_source(csv_source(2, "id,title\n99,Extra"))
    assert [p.id for p in catalog.get_all_products(SHOP)] == ["1", "2", "3", "4", "5"]


def test_iter_pages_stops_on_empty_page():
    adapter = FakeAdapter({0: FetchResult(products=[], has_more=True)})
    assert len(list(iter_pages(adapter, None, None, 10))) == 1


def test_source_connection_test(catalog):
    assert catalog.test_catalog_source("csv", {"csvContent": "id\n1"}).success is True

    invalid = catalog.test_catalog_source("shopify", {"shopDomain": "demo.myshopify.com"})
    assert invalid.success is False
    assert invalid.error

    unknown = catalog.test_catalog_source("ftp", {})
    assert unknown.success is False


def test_source_stats(catalog):
    content = "id,title,category\n1,Hat,Accessories\n2,Scarf,Accessories\n3,Coat,Outerwear\n4,Sock,"
    stats = catalog.get_source_stats("csv", {"csvContent": content})
    assert stats.product_count == 4
    assert stats.category_count == 2


def test_source_stats_fall_back_to_page_total(catalog, use_adapter):
    use_adapter(FakeAdapter({0: FetchResult(products=products(1, category="Hats"), total=12)}, count=None))
    stats = catalog.get_source_stats("api_rest", {"url": "https://api.example"})
    assert stats.product_count == 12
    assert stats.category_count == 1


def test_source_stats_never_raise(catalog, use_adapter):
    use_adapter(FakeAdapter(error=CatalogConnectionError("API", "down")))
    stats = catalog.get_source_stats("api_rest", {"url": "https://api.example"})
    assert stats.product_count == 0
    assert stats.category_count == 0
    assert catalog.get_source_stats("shopify", {}).product_count == 0


def test_sources_loaded_from_file(tmp_path):
    path = tmp_path / "sources.json"
    path.write_text(json.dumps([csv_source(4, "id,title\n1,Cap")]))
    catalog = CatalogManager(DataCache(Config()), Config(CATALOG_SOURCES_FILE=str(path)))
    assert [s.id for s in catalog.get_sources()] == [4]
    assert [p.title for p in catalog.get_all_products(SHOP)] == ["Cap"]


@pytest.mark.parametrize("source_type", list(SourceType))
def test_every_adapter_meets_the_contract(source_type):
    assert isinstance(get_adapter(source_type), CatalogAdapter)
