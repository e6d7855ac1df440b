# shopping_assistant/integrations/rest/__init__.py
"""Generic REST API integration package."""

from .provider import RestApiAdapter

__all__ = ['RestApiAdapter']
