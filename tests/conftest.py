from typing import Any, Callable, Dict, List, Optional

import pytest

from shopping_assistant.config import Config
from shopping_assistant.database.models import Product
from shopping_assistant.integrations import http


class FakeResponse:
    """Just enough of ``requests.Response`` for the adapters."""

    def __init__(self, json_data: Any = None, status_code: int = 200, text: Optional[str] = None,
                 headers: Optional[Dict[str, str]] = None, reason: str = "OK"):
        self._json = json_data
        self.status_code = status_code
        self.text = text if text is not None else ""
        self.headers = headers or {}
        self.reason = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._json


class FakeHttp:
    """Stands in for ``requests.request``; records every call."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.handler: Callable[..., FakeResponse] = lambda method, url, **kwargs: FakeResponse([])

    def respond(self, *args, **kwargs) -> None:
        response = FakeResponse(*args, **kwargs)
        self.handler = lambda method, url, **_: response

    def __call__(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        return self.handler(method, url, **kwargs)

    @property
    def last(self) -> Dict[str, Any]:
        return self.calls[-1]


@pytest.fixture
def fake_http(monkeypatch: pytest.MonkeyPatch) -> FakeHttp:
    fake = FakeHttp()
    monkeypatch.setattr(http.requests, "request", fake)
    return fake


@pytest.fixture
def settings() -> Config:
    return Config(HTTP_TIMEOUT_SECONDS=5.0)


@pytest.fixture
def make_product() -> Callable[..., Product]:
    def factory(id: str = "p1", **fields) -> Product:
        fields.setdefault("title", f"Product {id}")
        return Product(id=id, **fields)
    return factory
