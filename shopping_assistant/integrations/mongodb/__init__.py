# shopping_assistant/integrations/mongodb/__init__.py
"""MongoDB integration package."""

from .provider import MongoDBAdapter

__all__ = ['MongoDBAdapter']
