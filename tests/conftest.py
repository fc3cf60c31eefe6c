"""pytest configuration for sdstatus tests."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from sdstatus.models import ScanTarget

SAMPLE_METADATA = {
    "sd_version": "0.6",
    "gpg_fpr": "ABC123",
    "server_os": "20.04",
    "v3_source_url": "abcdefghijklmnop.onion",
    "supported_languages": ["en_US", "de_DE"],
}


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "asyncio: mark test as async"
    )


def make_handler(routes: dict):
    """Build a MockTransport handler from ``{host: behaviour}``.

    A behaviour is a dict (served as JSON with 200), an int status code,
    an exception instance (raised), a ``("sleep", seconds)`` tuple that
    hangs before answering, or raw ``bytes`` served with 200.
    """

    async def handler(request: httpx.Request) -> httpx.Response:
        behaviour = routes.get(request.url.host)
        if behaviour is None:
            raise httpx.ConnectError("Connection refused", request=request)
        if isinstance(behaviour, tuple) and behaviour[0] == "sleep":
            await asyncio.sleep(behaviour[1])
            return httpx.Response(200, json=SAMPLE_METADATA)
        if isinstance(behaviour, Exception):
            raise behaviour
        if isinstance(behaviour, int):
            return httpx.Response(behaviour)
        if isinstance(behaviour, bytes):
            return httpx.Response(200, content=behaviour)
        return httpx.Response(200, content=json.dumps(behaviour).encode())

    return handler


@pytest.fixture
def mock_client():
    """Factory for an AsyncClient backed by :func:`make_handler` routes."""
    def _factory(routes: dict) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(make_handler(routes)),
            trust_env=False,
        )

    return _factory


@pytest.fixture
def two_targets():
    return [
        ScanTarget(title="A", address="a.test"),
        ScanTarget(title="B", address="b.test"),
    ]


@pytest.fixture
def sample_metadata():
    return dict(SAMPLE_METADATA)
