# shopping_assistant/integrations/sql/__init__.py
"""Relational database integration package."""

from .provider import SqlDatabaseAdapter

__all__ = ['SqlDatabaseAdapter']
