# shopping_assistant/integrations/shopify/__init__.py
"""Shopify integration package."""

from .auth import ShopifyAuth
from .provider import ShopifyAdapter

__all__ = ['ShopifyAdapter', 'ShopifyAuth']
