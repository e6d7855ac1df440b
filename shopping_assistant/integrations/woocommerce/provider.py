"""WooCommerce REST API catalog adapter."""

import logging
from typing import Dict, Optional

from requests.auth import HTTPBasicAuth

from ...config import Config
from ...database.models import ConnectionTestResult, FetchResult, SchemaMapping
from ...errors import AdapterError, ParseError
from ..http import check_reachable, read_json, send_request
from ..schema_mapper import map_products
from ..sources import WooCommerceConnectionConfig

logger = logging.getLogger(__name__)

# Applied to the pre-flattened WooCommerce product when no mapping is supplied
DEFAULT_MAPPING = SchemaMapping(
    product_id="id",
    title="name",
    description="description",
    price="price",
    category="categories",
    type="type",
    vendor="vendor",
    tags="tags",
    images="images",
    variants="variations",
    in_stock="in_stock",
    metadata={"stockQuantity": "stock_quantity", "permalink": "permalink"},
)

class WooCommerceAdapter:
    """WooCommerce store integration (Basic auth with consumer key/secret)."""

    name = "WooCommerce"

    def __init__(self, settings: Optional[Config] = None):
        self.settings = settings or Config()

    def _products_url(self, config: WooCommerceConnectionConfig) -> str:
        api_version = config.api_version.strip("/")
        if not api_version.startswith("wc/"):
            api_version = f"wc/{api_version}"
        return f"{config.url.rstrip('/')}/wp-json/{api_version}/products"

    def fetch_products(self, config: WooCommerceConnectionConfig, schema_mapping: Optional[SchemaMapping] = None,
                       limit: int = 100, offset: int = 0) -> FetchResult:
        page = offset // limit + 1 if limit else 1
        response = send_request(
            self.name,
            self._products_url(config),
            params={"per_page": limit, "page": page},
            auth=HTTPBasicAuth(config.consumer_key, config.consumer_secret),
            timeout=self.settings.HTTP_TIMEOUT_SECONDS
        )
        payload = read_json(self.name, response)
        if not isinstance(payload, list):
            raise ParseError(self.name, "Expected a JSON array of products")

        try:
            if schema_mapping is not None:
                products = map_products(payload, schema_mapping)
            else:
                products = map_products([self._flatten(p) for p in payload], DEFAULT_MAPPING)
            total = int(response.headers.get("X-WP-Total") or 0)
            total_pages = int(response.headers.get("X-WP-TotalPages") or 0)
        except Exception as e:
            logger.error(f"WooCommerce adapter error: {e}")
            raise AdapterError(self.name, str(e), cause=e) from e

        return FetchResult(products=products, total=total, has_more=page < total_pages)

    def test_connection(self, config: WooCommerceConnectionConfig) -> ConnectionTestResult:
        return ConnectionTestResult(**check_reachable(
            self._products_url(config),
            params={"per_page": 1},
            auth=HTTPBasicAuth(config.consumer_key, config.consumer_secret),
            timeout=self.settings.HTTP_TIMEOUT_SECONDS
        ))

    def get_product_count(self, config: WooCommerceConnectionConfig) -> Optional[int]:
        try:
            return self.fetch_products(config, None, 1, 0).total
        except Exception as e:
            logger.error(f"Error getting WooCommerce product count: {e}")
            return None

    @staticmethod
    def _flatten(wc_product: Dict) -> Dict:
        """Reduce WooCommerce's nested category/tag/image objects to plain values."""
        return {
            **wc_product,
            "categories": [c.get("name") for c in wc_product.get("categories") or [] if c.get("name")],
            "tags": [t.get("name") for t in wc_product.get("tags") or [] if t.get("name")],
            "images": [i.get("src") for i in wc_product.get("images") or [] if i.get("src")],
            "in_stock": (wc_product.get("stock_status") or "instock") == "instock",
        }
