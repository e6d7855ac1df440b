"""Shopify catalog adapter."""

import logging
from typing import List, Dict, Optional

from ...config import Config
from ...database.models import ConnectionTestResult, FetchResult, Product, SchemaMapping
from ...errors import AdapterError, MappingError
from ..schema_mapper import map_product, normalize_price
from ..sources import ShopifyConnectionConfig
from .auth import ShopifyAuth

logger = logging.getLogger(__name__)

class ShopifyAdapter:
    """Shopify Admin REST integration.

    Pages with Shopify's ``since_id`` cursor: the ``offset`` argument is passed
    through as the cursor and each result reports ``next_cursor``.
    """

    name = "Shopify"

    def __init__(self, settings: Optional[Config] = None):
        self.settings = settings or Config()

    def fetch_products(self, config: ShopifyConnectionConfig, schema_mapping: Optional[SchemaMapping] = None,
                       limit: int = 250, offset: int = 0) -> FetchResult:
        """Fetch one page of Shopify products and convert to canonical format."""
        auth = ShopifyAuth(config, self.settings)
        params = {"limit": limit}
        if offset:
            params["since_id"] = offset

        try:
            response = auth.make_request("products.json", params=params)
            shopify_products = response.get("products", []) if isinstance(response, dict) else []

            products = []
            for raw in shopify_products:
                try:
                    if schema_mapping is not None:
                        products.append(map_product(raw, schema_mapping))
                    else:
                        products.append(self._convert_product(raw))
                except MappingError as e:
                    logger.warning(f"Skipping Shopify product without id: {e}")
        except AdapterError:
            raise
        except Exception as e:
            logger.error(f"Shopify adapter error: {e}")
            raise AdapterError(self.name, str(e), cause=e) from e

        next_cursor = str(shopify_products[-1].get("id")) if shopify_products else None
        logger.info(f"Fetched {len(products)} products from Shopify store {auth.shop_domain}")
        return FetchResult(
            products=products,
            has_more=len(shopify_products) == limit,
            next_cursor=next_cursor
        )

    def test_connection(self, config: ShopifyConnectionConfig) -> ConnectionTestResult:
        """Check the store answers shop.json with the configured token."""
        return ConnectionTestResult(**ShopifyAuth(config, self.settings).test_connection())

    def get_product_count(self, config: ShopifyConnectionConfig) -> Optional[int]:
        try:
            response = ShopifyAuth(config, self.settings).make_request("products/count.json")
            return response.get("count") or None
        except Exception as e:
            logger.error(f"Error getting Shopify product count: {e}")
            return None

    def _convert_product(self, shopify_product: Dict) -> Product:
        """Convert a Shopify product to the canonical Product - handles None values."""
        variants = shopify_product.get("variants") or []
        variant = variants[0] if variants else {}

        # Safe string conversion - handles None
        def safe_str(value):
            return str(value or "").strip()

        # Safe int conversion
        def safe_int(value, default=0):
            try:
                return int(value) if value is not None else default
            except (TypeError, ValueError):
                return default

        if shopify_product.get("id") in (None, ""):
            raise MappingError("id")

        # Parse tags safely
        tags_str = safe_str(shopify_product.get("tags"))
        tags: List[str] = [tag.strip() for tag in tags_str.split(",") if tag.strip()] if tags_str else []

        product_type = safe_str(shopify_product.get("product_type"))

        return Product(
            id=str(shopify_product["id"]),
            title=safe_str(shopify_product.get("title")),
            description=safe_str(shopify_product.get("body_html")),
            price=normalize_price(variant.get("price")),
            category=product_type,
            type=product_type,
            vendor=safe_str(shopify_product.get("vendor")),
            tags=tags,
            images=[img["src"] for img in shopify_product.get("images") or [] if img.get("src")],
            variants=variants,
            in_stock=safe_int(variant.get("inventory_quantity")) > 0,
            metadata={
                "handle": shopify_product.get("handle"),
                "status": shopify_product.get("status"),
                "publishedAt": shopify_product.get("published_at"),
            }
        )
