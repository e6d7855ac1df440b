"""Catalog source integrations."""

from .base import CatalogAdapter
from .manager import CatalogManager, get_adapter
from .sources import CatalogSource, SourceType, parse_connection_config

__all__ = ['CatalogAdapter', 'CatalogManager', 'CatalogSource', 'SourceType', 'get_adapter', 'parse_connection_config']
