# shopping_assistant/integrations/csv/__init__.py
"""Flat-file integration package."""

from .provider import CsvAdapter, parse_csv

__all__ = ['CsvAdapter', 'parse_csv']
