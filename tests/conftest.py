"""
Pytest configuration and shared fixtures for weavefeed tests.

Provides:
- Logging configuration for the test session
- Gateway stubs and index envelope builders (``tests.fixtures.gateway``)
- Mock aiohttp session/response builders for ``GatewayClient`` tests
- Automatic ``unit`` marker for everything under ``tests/unit``
"""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest


pytest_plugins = ["tests.fixtures.gateway"]


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)


# ============================================================================
# aiohttp Mocks
# ============================================================================


def mock_response(*chunks: bytes, status: int = 200) -> MagicMock:
    """Build a mock ``aiohttp.ClientResponse`` that yields *chunks* then EOF."""
    resp = MagicMock()
    resp.status = status
    content = MagicMock()
    content.read = AsyncMock(side_effect=[*chunks, b""])
    resp.content = content
    return resp


def mock_session(response: MagicMock | None = None, *, error: BaseException | None = None) -> MagicMock:
    """Build a mock ``aiohttp.ClientSession`` whose ``request()`` yields *response*.

    When *error* is given, entering the request context raises it instead.
    """
    context = MagicMock()
    if error is not None:
        context.__aenter__ = AsyncMock(side_effect=error)
    else:
        context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)

    session = MagicMock()
    session.request = MagicMock(return_value=context)
    session.close = AsyncMock()
    return session


# ============================================================================
# Markers
# ============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on location."""
    for item in items:
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)
