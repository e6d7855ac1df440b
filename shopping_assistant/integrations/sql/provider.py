"""Relational catalog adapters (PostgreSQL and MySQL).

Every call builds its own engine with a single pooled connection, runs inside
``with engine.connect()`` and disposes the engine before returning, so no
handle outlives the call.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.pool import QueuePool

from ...config import Config
from ...database.models import ConnectionTestResult, FetchResult, SchemaMapping
from ...errors import (
    AdapterError,
    AuthenticationError,
    CatalogConnectionError,
    PartialCountError,
)
from ..schema_mapper import map_products
from ..sources import SqlConnectionConfig

logger = logging.getLogger(__name__)

_LIMIT = re.compile(r"\blimit\b", re.IGNORECASE)
_OFFSET = re.compile(r"\boffset\b", re.IGNORECASE)

# Bare URL schemes -> SQLAlchemy dialect+driver
_DRIVERS = {
    "postgres": "postgresql+psycopg2",
    "postgresql": "postgresql+psycopg2",
    "mysql": "mysql+pymysql",
}

_AUTH_MARKERS = ("authentication failed", "access denied", "password")


def normalize_connection_url(connection_string: str) -> str:
    """Give bare ``postgres://``/``mysql://`` URLs an explicit driver."""
    scheme, sep, rest = connection_string.partition("://")
    if sep and scheme.lower() in _DRIVERS:
        return f"{_DRIVERS[scheme.lower()]}://{rest}"
    return connection_string


def build_select(config: SqlConnectionConfig, limit: int, offset: int) -> str:
    """Caller query wins over table; LIMIT/OFFSET appended only when absent."""
    if config.query:
        query = config.query.strip().rstrip(";")
        if not _LIMIT.search(query):
            query += f" LIMIT {int(limit)}"
        if not _OFFSET.search(query):
            query += f" OFFSET {int(offset)}"
        return query
    return f"SELECT * FROM {config.table} LIMIT {int(limit)} OFFSET {int(offset)}"


def build_count(config: SqlConnectionConfig) -> str:
    if config.table and not config.query:
        return f"SELECT COUNT(*) AS count FROM {config.table}"
    return f"SELECT COUNT(*) AS count FROM ({config.query.strip().rstrip(';')}) AS subquery"


class SqlDatabaseAdapter:
    """One adapter class, two dialect variants: ``postgresql`` and ``mysql``."""

    NAMES = {"postgresql": "PostgreSQL", "mysql": "MySQL"}

    def __init__(self, dialect: str, settings: Optional[Config] = None):
        if dialect not in self.NAMES:
            raise ValueError(f"Unsupported SQL dialect: {dialect}")
        self.dialect = dialect
        self.name = self.NAMES[dialect]
        self.settings = settings or Config()

    def _create_engine(self, config: SqlConnectionConfig) -> Engine:
        url = normalize_connection_url(config.connection_string)
        connect_args: Dict[str, Any] = {}
        if url.startswith(("postgresql", "mysql")):
            connect_args["connect_timeout"] = self.settings.DB_CONNECT_TIMEOUT_SECONDS
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=1,
            max_overflow=0,
            connect_args=connect_args,
        )

    def _read_only(self, engine: Engine) -> Dict[str, Any]:
        if engine.dialect.name == "postgresql":
            return {"postgresql_readonly": True}
        return {}

    def _wrap(self, error: Exception) -> AdapterError:
        message = str(error).strip().splitlines()[0] if str(error).strip() else type(error).__name__
        if isinstance(error, OperationalError):
            if any(marker in message.lower() for marker in _AUTH_MARKERS):
                return AuthenticationError(self.name, message, cause=error)
            return CatalogConnectionError(self.name, message, cause=error)
        return AdapterError(self.name, message, cause=error)

    def fetch_products(self, config: SqlConnectionConfig, schema_mapping: Optional[SchemaMapping] = None,
                       limit: int = 100, offset: int = 0) -> FetchResult:
        engine = None
        try:
            engine = self._create_engine(config)
            with engine.connect() as conn:
                conn = conn.execution_options(**self._read_only(engine))
                rows: List[Dict[str, Any]] = [
                    dict(row) for row in conn.execute(text(build_select(config, limit, offset))).mappings()
                ]

                total: Optional[int] = None
                try:
                    total = int(conn.execute(text(build_count(config))).scalar() or 0)
                except SQLAlchemyError as e:
                    # Count failure leaves the page usable
                    conn.rollback()
                    logger.warning(str(PartialCountError(self.name, e)))

            products = map_products(rows, schema_mapping)
        except SQLAlchemyError as e:
            logger.error(f"{self.name} adapter error: {e}")
            raise self._wrap(e) from e
        except Exception as e:
            logger.error(f"{self.name} adapter error: {e}")
            raise AdapterError(self.name, str(e), cause=e) from e
        finally:
            if engine is not None:
                engine.dispose()

        logger.info(f"Fetched {len(products)} rows from {self.name}")
        return FetchResult(
            products=products,
            total=total,
            has_more=offset + limit < total if total else len(rows) == limit
        )

    def test_connection(self, config: SqlConnectionConfig) -> ConnectionTestResult:
        engine = None
        try:
            engine = self._create_engine(config)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return ConnectionTestResult(success=True)
        except Exception as e:
            logger.error(f"{self.name} connection test failed: {e}")
            return ConnectionTestResult(success=False, error=str(e))
        finally:
            if engine is not None:
                engine.dispose()

    def get_product_count(self, config: SqlConnectionConfig) -> Optional[int]:
        engine = None
        try:
            engine = self._create_engine(config)
            with engine.connect() as conn:
                return int(conn.execute(text(build_count(config))).scalar() or 0)
        except Exception as e:
            logger.error(f"Error getting {self.name} product count: {e}")
            return None
        finally:
            if engine is not None:
                engine.dispose()
