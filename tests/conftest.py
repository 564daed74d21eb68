"""
Shared pytest fixtures.

Clients are exercised against a ``Mock(spec=requests.Session)``; responses are
real ``requests.Response`` objects with their body preloaded, so ``json()``,
``content`` and ``iter_content`` behave exactly as in production.
"""

import json
from typing import Any, Dict, Optional
from unittest.mock import Mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict


def build_response(
    status: int = 200,
    json_body: Any = None,
    *,
    content: Optional[bytes] = None,
    headers: Optional[Dict[str, str]] = None,
    url: str = "https://example.test/",
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    if content is None:
        content = b"" if json_body is None else json.dumps(json_body).encode("utf-8")
    resp._content = content
    resp._content_consumed = True
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.encoding = "utf-8"
    resp.url = url
    return resp


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def no_sleep(monkeypatch):
    """Replace time.sleep with a recorder; returns the list of requested delays."""
    delays = []
    monkeypatch.setattr("shulkers.client.time.sleep", lambda s: delays.append(s))
    return delays
