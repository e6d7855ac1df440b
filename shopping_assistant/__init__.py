"""Catalog ingestion and rule-based product matching for the shopping assistant."""

__version__ = "0.1.0"
