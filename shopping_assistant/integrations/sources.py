"""Catalog source records and their per-source connection configs.

Each source type has its own config model; ``ConnectionConfig`` is a union
discriminated on ``source_type`` so a malformed config is rejected before any
adapter touches the network or a database.
"""

import json
import logging
import re
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from ..database.models import SchemaMapping

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


SourceStatus = Literal["active", "inactive", "error", "syncing"]


class SourceType(str, Enum):
    SHOPIFY = "shopify"
    WOOCOMMERCE = "woocommerce"
    BIGCOMMERCE = "bigcommerce"
    MAGENTO = "magento"
    API_REST = "api_rest"
    API_CUSTOM = "api_custom"
    CSV = "csv"
    DATABASE_POSTGRESQL = "database_postgresql"
    DATABASE_MYSQL = "database_mysql"
    DATABASE_MONGODB = "database_mongodb"


class _SourceConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ShopifyConnectionConfig(_SourceConfig):
    source_type: Literal["shopify"] = "shopify"
    shop_domain: str = Field(alias="shopDomain")
    access_token: str = Field(alias="accessToken")
    api_version: Optional[str] = Field(default=None, alias="apiVersion")


class WooCommerceConnectionConfig(_SourceConfig):
    source_type: Literal["woocommerce"] = "woocommerce"
    url: str
    consumer_key: str = Field(alias="consumerKey")
    consumer_secret: str = Field(alias="consumerSecret")
    api_version: str = Field(default="wc/v3", alias="apiVersion")


class PaginationConfig(_SourceConfig):
    style: Literal["offset", "page"] = "offset"
    limit_param: str = Field(default="limit", alias="limitParam")
    offset_param: str = Field(default="offset", alias="offsetParam")
    page_param: str = Field(default="page", alias="pageParam")


class RestApiConnectionConfig(_SourceConfig):
    source_type: Literal["api_rest", "api_custom", "bigcommerce", "magento"] = "api_rest"
    url: str
    method: Literal["GET", "POST"] = "GET"
    headers: Dict[str, str] = {}
    auth_type: Literal["bearer", "header", "query", "none"] = Field(default="none", alias="authType")
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    api_key_header: str = Field(default="X-API-Key", alias="apiKeyHeader")
    api_key_param: str = Field(default="api_key", alias="apiKeyParam")
    body: Optional[Dict[str, Any]] = None
    pagination: Optional[PaginationConfig] = None
    product_path: Optional[str] = Field(default=None, alias="productPath")
    total_path: Optional[str] = Field(default=None, alias="totalPath")

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value):
        return value.upper() if isinstance(value, str) else value


class CsvConnectionConfig(_SourceConfig):
    source_type: Literal["csv"] = "csv"
    file_url: Optional[str] = Field(default=None, alias="fileUrl")
    csv_content: Optional[str] = Field(default=None, alias="csvContent")
    has_header: bool = Field(default=True, alias="hasHeader")
    delimiter: str = ","

    @field_validator("delimiter")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("delimiter must be a single character")
        return value


class SqlConnectionConfig(_SourceConfig):
    source_type: Literal["database_postgresql", "database_mysql"]
    connection_string: str = Field(alias="connectionString")
    query: Optional[str] = None
    table: Optional[str] = None

    @field_validator("table")
    @classmethod
    def _plain_identifier(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _IDENTIFIER.match(value):
            raise ValueError(f"invalid table name: {value!r}")
        return value

    @model_validator(mode="after")
    def _query_or_table(self):
        if not (self.query or self.table):
            raise ValueError("Either query or table must be provided")
        return self


class MongoConnectionConfig(_SourceConfig):
    source_type: Literal["database_mongodb"] = "database_mongodb"
    connection_string: str = Field(alias="connectionString")
    database: Optional[str] = None
    collection: str = "products"
    query: Dict[str, Any] = {}

    @field_validator("query", mode="before")
    @classmethod
    def _parse_filter(cls, value):
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"query is not valid JSON: {e}") from e
        if not isinstance(value, dict):
            raise ValueError("query must be a JSON object")
        return value


ConnectionConfig = Annotated[
    Union[
        ShopifyConnectionConfig,
        WooCommerceConnectionConfig,
        RestApiConnectionConfig,
        CsvConnectionConfig,
        SqlConnectionConfig,
        MongoConnectionConfig,
    ],
    Field(discriminator="source_type"),
]

_connection_config_adapter = TypeAdapter(ConnectionConfig)


def parse_connection_config(source_type: str, raw: Dict[str, Any]) -> ConnectionConfig:
    """Validate a raw config dict for the given source type."""
    payload = dict(raw or {})
    payload["source_type"] = SourceType(source_type).value
    return _connection_config_adapter.validate_python(payload)


class CatalogSource(BaseModel):
    """A configured catalog source for one shop (connection info, not products)."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    shop_domain: str = Field(alias="shopDomain")
    name: str = ""
    status: SourceStatus = "active"
    connection_config: ConnectionConfig = Field(alias="connectionConfig")
    schema_mapping: Optional[SchemaMapping] = Field(default=None, alias="schemaMapping")
    cache_enabled: bool = Field(default=True, alias="cacheEnabled")
    cache_ttl_seconds: int = Field(default=300, alias="cacheTtlSeconds")
    last_sync_at: Optional[datetime] = None
    last_sync_error: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _tag_connection_config(cls, data):
        # Stored records keep the type beside the config: {"sourceType": ..., "connectionConfig": {...}}
        if isinstance(data, dict):
            source_type = data.get("sourceType") or data.get("source_type")
            key = "connectionConfig" if "connectionConfig" in data else "connection_config"
            config = data.get(key)
            if source_type and isinstance(config, dict) and "source_type" not in config:
                data = {**data, key: {**config, "source_type": source_type}}
        return data

    @property
    def source_type(self) -> SourceType:
        return SourceType(self.connection_config.source_type)


def load_sources_file(path: str) -> List[CatalogSource]:
    """Load catalog source records from a JSON file (a list of objects)."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("sources", [])
    sources = [CatalogSource.model_validate(item) for item in raw]
    logger.info(f"Loaded {len(sources)} catalog sources from {path}")
    return sources
