"""
Async HTTP client for the gateway's index, content, and metadata endpoints.

[GatewayClient][weavefeed.gateway.client.GatewayClient] owns a shared
``aiohttp.ClientSession`` (connection pooling across index and content
requests) and converts every transport-level failure -- connection errors,
timeouts, non-success statuses, oversized or non-JSON bodies -- into a
[TransportError][weavefeed.core.exceptions.TransportError]. Nothing above
this module sees an ``aiohttp`` exception.

Endpoints:
    ``POST {base_url}{graphql_path}``: GraphQL transaction index.
    ``GET {base_url}/{id}``: raw transaction payload.
    ``GET {base_url}/tx/{id}``: JSON transaction envelope (metadata only).

See Also:
    [IndexClient][weavefeed.gateway.index.IndexClient]: Index queries.
    [Hydrator][weavefeed.gateway.hydrator.Hydrator]: Payload fetches.
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from types import TracebackType
from typing import Any, Self
from urllib.parse import quote

import aiohttp

from weavefeed.core.exceptions import NotFoundError, TransportError
from weavefeed.utils.http import read_bounded

from .configs import GatewayConfig


logger = logging.getLogger("weavefeed.gateway")


class GatewayClient:
    """Session-owning HTTP client for a single gateway.

    Use as an async context manager, or call
    [open()][weavefeed.gateway.client.GatewayClient.open] /
    [close()][weavefeed.gateway.client.GatewayClient.close] explicitly. A
    caller-provided ``session`` is used as-is and never closed by this client.

    Examples:
        ```python
        async with GatewayClient(GatewayConfig(base_url="https://arweave.net")) as gw:
            raw = await gw.fetch_data("bNbA3TEQVL60xlgCcqdz4ZPHFZ711cZ3hmkpGttDt_U")
        ```
    """

    def __init__(
        self,
        config: GatewayConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config or GatewayConfig()
        self._session = session
        self._owns_session = session is None

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def graphql_url(self) -> str:
        return f"{self._config.base_url}{self._config.graphql_path}"

    def content_url(self, tx_id: str) -> str:
        return f"{self._config.base_url}/{quote(tx_id, safe='')}"

    def tx_url(self, tx_id: str) -> str:
        return f"{self._config.base_url}/tx/{quote(tx_id, safe='')}"

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """Create the underlying session. Idempotent."""
        if self._session is not None:
            return
        connector = aiohttp.TCPConnector(
            ssl=self._config.verify_ssl,
            limit=self._config.max_connections,
        )
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._config.user_agent},
        )
        self._owns_session = True
        logger.debug("gateway_session_opened base_url=%s", self._config.base_url)

    async def close(self) -> None:
        """Close the session if this client created it. Idempotent."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            logger.debug("gateway_session_closed base_url=%s", self._config.base_url)
            self._session = None

    async def __aenter__(self) -> Self:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def _request(  # noqa: PLR0913
        self,
        method: str,
        url: str,
        *,
        timeout: float,  # noqa: ASYNC109
        max_size: int,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Perform one request and return the bounded response body.

        Raises:
            NotFoundError: On HTTP 404.
            TransportError: On any other non-2xx status, connection failure,
                timeout (``timeout=True``), or oversized body.
        """
        if self._session is None:
            raise TransportError("gateway client is not open", url=url)

        client_timeout = aiohttp.ClientTimeout(
            total=timeout, connect=min(self._config.timeouts.connect, timeout)
        )
        try:
            async with self._session.request(
                method, url, data=data, headers=headers, timeout=client_timeout
            ) as resp:
                if resp.status == HTTPStatus.NOT_FOUND:
                    raise NotFoundError("HTTP 404", url=url)
                if not HTTPStatus.OK <= resp.status < HTTPStatus.MULTIPLE_CHOICES:
                    raise TransportError(f"HTTP {resp.status}", url=url, status=resp.status)
                return await read_bounded(resp, max_size)
        except TimeoutError as e:
            raise TransportError(f"timed out after {timeout}s", url=url, timeout=True) from e
        except (aiohttp.ClientError, OSError) as e:
            raise TransportError(str(e) or type(e).__name__, url=url) from e
        except ValueError as e:
            raise TransportError(str(e), url=url) from e

    async def post_graphql(self, body: bytes, *, timeout: float | None = None) -> Any:  # noqa: ASYNC109
        """POST a serialized GraphQL request and return the decoded JSON response.

        Raises:
            TransportError: On transport failure or a non-JSON response body.
        """
        timeout = timeout if timeout is not None else self._config.timeouts.index
        raw = await self._request(
            "POST",
            self.graphql_url,
            timeout=timeout,
            max_size=self._config.max_index_size,
            data=body,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        return _decode_json(raw, self.graphql_url)

    async def fetch_data(self, tx_id: str, *, timeout: float | None = None) -> bytes:  # noqa: ASYNC109
        """GET the raw payload bytes of a transaction.

        Raises:
            NotFoundError: If the gateway does not know the transaction.
            TransportError: On any other transport failure.
        """
        timeout = timeout if timeout is not None else self._config.timeouts.content
        return await self._request(
            "GET",
            self.content_url(tx_id),
            timeout=timeout,
            max_size=self._config.max_content_size,
        )

    async def fetch_tx(self, tx_id: str, *, timeout: float | None = None) -> Any:  # noqa: ASYNC109
        """GET the JSON transaction envelope from ``/tx/{id}``.

        Raises:
            NotFoundError: If the gateway does not know the transaction.
            TransportError: On any other transport failure or a non-JSON body.
        """
        timeout = timeout if timeout is not None else self._config.timeouts.index
        url = self.tx_url(tx_id)
        raw = await self._request(
            "GET",
            url,
            timeout=timeout,
            max_size=self._config.max_index_size,
            headers={"Accept": "application/json"},
        )
        return _decode_json(raw, url)


def _decode_json(raw: bytes, url: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as e:
        raise TransportError(f"invalid JSON response: {e}", url=url) from e
