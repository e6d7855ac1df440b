# shopping_assistant/integrations/woocommerce/__init__.py
"""WooCommerce integration package."""

from .provider import WooCommerceAdapter

__all__ = ['WooCommerceAdapter']
