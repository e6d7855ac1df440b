"""Shared HTTP request helper for the web-based catalog adapters."""

import logging
from typing import Any, Dict, Optional

import requests

from ..errors import AuthenticationError, CatalogConnectionError, ParseError

logger = logging.getLogger(__name__)


def send_request(adapter: str, url: str, method: str = "GET", headers: Optional[Dict] = None,
                 params: Optional[Dict] = None, data: Optional[Any] = None,
                 timeout: float = 10, auth: Optional[Any] = None) -> requests.Response:
    """Make a request and translate failures into typed adapter errors."""
    try:
        response = requests.request(
            method=method.upper(),
            url=url,
            headers=headers,
            params=params,
            json=data,
            auth=auth,
            timeout=timeout
        )
    except requests.exceptions.RequestException as e:
        logger.error(f"{adapter} request to {url} failed: {e}")
        raise CatalogConnectionError(adapter, str(e), cause=e) from e

    if response.status_code in (401, 403):
        raise AuthenticationError(adapter, f"HTTP {response.status_code}: {response.reason}")
    if not response.ok:
        logger.error(f"{adapter} API error: {response.status_code} {response.text[:200]}")
        raise CatalogConnectionError(adapter, f"HTTP {response.status_code}: {response.reason}")
    return response


def read_json(adapter: str, response: requests.Response) -> Any:
    """Decode a JSON body or raise ParseError."""
    try:
        return response.json()
    except ValueError as e:
        raise ParseError(adapter, f"Response is not valid JSON: {e}", cause=e) from e


def check_reachable(url: str, method: str = "GET", headers: Optional[Dict] = None,
                    params: Optional[Dict] = None, timeout: float = 10, auth: Optional[Any] = None) -> Dict:
    """Connection probe used by ``test_connection``; returns success/error instead of raising."""
    try:
        response = requests.request(
            method=method.upper(), url=url, headers=headers, params=params, auth=auth, timeout=timeout
        )
        if response.ok:
            return {"success": True}
        return {"success": False, "error": f"HTTP {response.status_code}: {response.reason}"}
    except requests.exceptions.RequestException as e:
        logger.error(f"Connection test for {url} failed: {e}")
        return {"success": False, "error": str(e)}
