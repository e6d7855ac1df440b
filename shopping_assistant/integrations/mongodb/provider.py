"""MongoDB catalog adapter."""

import logging
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from ...config import Config
from ...database.models import ConnectionTestResult, FetchResult, SchemaMapping
from ...errors import AdapterError, AuthenticationError, CatalogConnectionError, PartialCountError
from ..schema_mapper import map_products
from ..sources import MongoConnectionConfig

logger = logging.getLogger(__name__)

# Server error code for a failed authentication
_AUTH_FAILED = 18


def document_to_row(document: Dict[str, Any]) -> Dict[str, Any]:
    """Expose Mongo's ``_id`` as a string ``id``."""
    row = {key: value for key, value in document.items() if key != "_id"}
    if document.get("_id") is not None:
        row["id"] = str(document["_id"])
    return row


class MongoDBAdapter:
    name = "MongoDB"

    def __init__(self, settings: Optional[Config] = None):
        self.settings = settings or Config()

    def _client(self, config: MongoConnectionConfig) -> MongoClient:
        timeout_ms = int(self.settings.DB_CONNECT_TIMEOUT_SECONDS * 1000)
        return MongoClient(
            config.connection_string,
            maxPoolSize=1,
            serverSelectionTimeoutMS=timeout_ms,
            connectTimeoutMS=timeout_ms,
        )

    @staticmethod
    def _collection(client: MongoClient, config: MongoConnectionConfig):
        db = client[config.database] if config.database else client.get_default_database()
        return db[config.collection]

    def _wrap(self, error: Exception) -> AdapterError:
        if isinstance(error, OperationFailure) and error.code == _AUTH_FAILED:
            return AuthenticationError(self.name, str(error), cause=error)
        if isinstance(error, ConnectionFailure):
            return CatalogConnectionError(self.name, str(error), cause=error)
        return AdapterError(self.name, str(error), cause=error)

    def fetch_products(self, config: MongoConnectionConfig, schema_mapping: Optional[SchemaMapping] = None,
                       limit: int = 100, offset: int = 0) -> FetchResult:
        # pymongo reads limit(0) as "no limit"
        if limit <= 0:
            return FetchResult()

        try:
            with self._client(config) as client:
                collection = self._collection(client, config)
                documents: List[Dict[str, Any]] = list(
                    collection.find(config.query).skip(offset).limit(limit)
                )

                total: Optional[int] = None
                try:
                    total = collection.count_documents(config.query)
                except PyMongoError as e:
                    logger.warning(str(PartialCountError(self.name, e)))

            products = map_products([document_to_row(doc) for doc in documents], schema_mapping)
        except Exception as e:
            logger.error(f"MongoDB adapter error: {e}")
            raise self._wrap(e) from e

        logger.info(f"Fetched {len(products)} documents from {config.collection}")
        return FetchResult(
            products=products,
            total=total,
            has_more=offset + limit < total if total else len(documents) == limit
        )

    def test_connection(self, config: MongoConnectionConfig) -> ConnectionTestResult:
        try:
            with self._client(config) as client:
                client.admin.command("ping")
            return ConnectionTestResult(success=True)
        except Exception as e:
            logger.error(f"MongoDB connection test failed: {e}")
            return ConnectionTestResult(success=False, error=str(e))

    def get_product_count(self, config: MongoConnectionConfig) -> Optional[int]:
        try:
            with self._client(config) as client:
                return self._collection(client, config).count_documents(config.query)
        except Exception as e:
            logger.error(f"Error getting MongoDB product count: {e}")
            return None
