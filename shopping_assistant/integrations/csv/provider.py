"""Flat-file (CSV) catalog adapter.

Content comes from ``csv_content`` when supplied inline, otherwise from a GET
on ``file_url``. Flat files have no native paging, so the whole file is parsed
and the requested window is sliced in memory.
"""

import logging
from typing import Dict, List, Optional

from ...config import Config
from ...database.models import ConnectionTestResult, FetchResult, Product, SchemaMapping
from ...errors import AdapterError, MappingError, ParseError
from ..http import check_reachable, send_request
from ..schema_mapper import auto_detect_mapping, map_product
from ..sources import CsvConnectionConfig

logger = logging.getLogger(__name__)


def _clean_cell(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value.strip('"')


def parse_csv(content: str, has_header: bool = True, delimiter: str = ",") -> List[Dict[str, str]]:
    """Minimal line-based parser: no quoted delimiters, no embedded newlines."""
    lines = [line for line in content.splitlines() if line.strip()]
    if not lines:
        return []

    headers = [_clean_cell(h) for h in lines[0].split(delimiter)] if has_header else None
    rows = []
    for line in lines[1:] if has_header else lines:
        values = [_clean_cell(v) for v in line.split(delimiter)]
        if headers is not None:
            values += [""] * (len(headers) - len(values))
            rows.append(dict(zip(headers, values)))
        else:
            rows.append({f"column{i + 1}": value for i, value in enumerate(values)})
    return rows


class CsvAdapter:
    name = "CSV"

    def __init__(self, settings: Optional[Config] = None):
        self.settings = settings or Config()

    def _load_content(self, config: CsvConnectionConfig) -> str:
        if config.csv_content:
            return config.csv_content
        if config.file_url:
            response = send_request(self.name, config.file_url, timeout=self.settings.HTTP_TIMEOUT_SECONDS)
            return response.text
        raise ParseError(self.name, "No CSV source provided")

    def fetch_products(self, config: CsvConnectionConfig, schema_mapping: Optional[SchemaMapping] = None,
                       limit: int = 100, offset: int = 0) -> FetchResult:
        content = self._load_content(config)

        try:
            rows = parse_csv(content, has_header=config.has_header, delimiter=config.delimiter)
            mapping = schema_mapping
            if mapping is None and rows:
                mapping = auto_detect_mapping(rows[:10])

            products: List[Product] = []
            for number, row in enumerate(rows, start=1):
                products.append(map_product(row, mapping, fallback_id=f"row-{number}"))
        except MappingError as e:
            raise ParseError(self.name, str(e), cause=e) from e
        except Exception as e:
            logger.error(f"CSV adapter error: {e}")
            raise AdapterError(self.name, str(e), cause=e) from e

        total = len(products)
        page = products[offset:offset + limit] if limit else products[offset:]
        logger.info(f"Parsed {total} CSV rows, returning {len(page)} from offset {offset}")
        return FetchResult(
            products=page,
            total=total,
            has_more=offset + limit < total if limit else False
        )

    def test_connection(self, config: CsvConnectionConfig) -> ConnectionTestResult:
        if config.csv_content:
            return ConnectionTestResult(success=True)
        if config.file_url:
            return ConnectionTestResult(**check_reachable(
                config.file_url, method="HEAD", timeout=self.settings.HTTP_TIMEOUT_SECONDS
            ))
        return ConnectionTestResult(success=False, error="No CSV source provided")

    def get_product_count(self, config: CsvConnectionConfig) -> Optional[int]:
        try:
            return self.fetch_products(config, None, 1, 0).total
        except Exception as e:
            logger.error(f"Error getting CSV product count: {e}")
            return None
