"""Generic REST API adapter for product endpoints with configurable shape."""

import logging
from typing import Any, Dict, List, Optional, Tuple

from ...config import Config
from ...database.models import ConnectionTestResult, FetchResult, SchemaMapping
from ...errors import AdapterError
from ..http import check_reachable, read_json, send_request
from ..schema_mapper import get_path, map_products
from ..sources import RestApiConnectionConfig

logger = logging.getLogger(__name__)

class RestApiAdapter:
    """Fetches products from any JSON REST endpoint."""

    name = "API"

    def __init__(self, settings: Optional[Config] = None):
        self.settings = settings or Config()

    def _build_request(self, config: RestApiConnectionConfig) -> Tuple[Dict[str, str], Dict[str, Any]]:
        headers = {"Content-Type": "application/json", **config.headers}
        params: Dict[str, Any] = {}

        if config.api_key:
            if config.auth_type == "bearer":
                headers["Authorization"] = f"Bearer {config.api_key}"
            elif config.auth_type == "header":
                headers[config.api_key_header] = config.api_key
            elif config.auth_type == "query":
                params[config.api_key_param] = config.api_key

        return headers, params

    def fetch_products(self, config: RestApiConnectionConfig, schema_mapping: Optional[SchemaMapping] = None,
                       limit: int = 100, offset: int = 0) -> FetchResult:
        headers, params = self._build_request(config)

        pagination = config.pagination
        if pagination:
            params[pagination.limit_param] = limit
            if pagination.style == "page":
                params[pagination.page_param] = offset // limit + 1 if limit else 1
            else:
                params[pagination.offset_param] = offset

        response = send_request(
            self.name,
            config.url,
            method=config.method,
            headers=headers,
            params=params,
            data=config.body if config.method == "POST" else None,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS
        )
        data = read_json(self.name, response)

        try:
            items = self._extract_products(data, config.product_path)
            total = self._extract_total(data, config.total_path)
            products = map_products(items, schema_mapping)
        except Exception as e:
            logger.error(f"API adapter error: {e}")
            raise AdapterError(self.name, str(e), cause=e) from e

        has_more = offset + limit < total if total else len(items) == limit
        logger.info(f"Fetched {len(products)} products from {config.url}")
        return FetchResult(products=products, total=total, has_more=has_more)

    def test_connection(self, config: RestApiConnectionConfig) -> ConnectionTestResult:
        headers, params = self._build_request(config)
        return ConnectionTestResult(**check_reachable(
            config.url, method=config.method, headers=headers, params=params,
            timeout=self.settings.HTTP_TIMEOUT_SECONDS
        ))

    def get_product_count(self, config: RestApiConnectionConfig) -> Optional[int]:
        try:
            return self.fetch_products(config, None, 1, 0).total
        except Exception as e:
            logger.error(f"Error getting API product count: {e}")
            return None

    @staticmethod
    def _extract_products(data: Any, product_path: Optional[str]) -> List[Any]:
        if product_path:
            value = get_path(data, product_path)
            return value if isinstance(value, list) else []
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            for key in ("products", "data"):
                if isinstance(data.get(key), list):
                    return data[key]
        return []

    @staticmethod
    def _extract_total(data: Any, total_path: Optional[str]) -> Optional[int]:
        if total_path:
            value = get_path(data, total_path)
        elif isinstance(data, dict):
            value = data.get("total", data.get("count"))
        else:
            value = None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return int(value)
