import logging
from typing import Optional, Dict

from ...config import Config
from ..http import check_reachable, read_json, send_request
from ..sources import ShopifyConnectionConfig

logger = logging.getLogger(__name__)

class ShopifyAuth:
    def __init__(self, config: ShopifyConnectionConfig, settings: Optional[Config] = None):
        """
        Initialize Shopify auth for one store.
        Args:
            config: Store connection config. ``shop_domain`` may include a scheme
            or trailing slash (e.g. 'https://my-store.myshopify.com/'), both are stripped.
            settings: Process settings (API version default, request timeout)
        """
        settings = settings or Config()
        self.shop_domain = config.shop_domain.replace("https://", "").replace("http://", "").rstrip("/")
        self.access_token = config.access_token
        self.api_version = config.api_version or settings.SHOPIFY_API_VERSION
        self.timeout = settings.HTTP_TIMEOUT_SECONDS
        self.base_url = f"https://{self.shop_domain}/admin/api/{self.api_version}"

    def get_headers(self) -> dict:
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json"
        }

    def test_connection(self) -> Dict:
        """Test if the auth credentials work."""
        return check_reachable(f"{self.base_url}/shop.json", headers=self.get_headers(), timeout=self.timeout)

    def make_request(self, endpoint: str, method: str = "GET",
                    params: Optional[Dict] = None, data: Optional[Dict] = None) -> Dict:
        """Make authenticated request to Shopify API."""
        response = send_request(
            "Shopify",
            f"{self.base_url}/{endpoint}",
            method=method,
            headers=self.get_headers(),
            params=params,
            data=data,
            timeout=self.timeout
        )
        return read_json("Shopify", response)
