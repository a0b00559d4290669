"""
Index client: executes tag queries against the gateway's GraphQL index.

[IndexClient.fetch_page][weavefeed.gateway.index.IndexClient.fetch_page] sends a
[QuerySpec][weavefeed.models.query.QuerySpec] and decodes the response
envelope::

    {"data": {"transactions": {
        "pageInfo": {"hasNextPage": true},
        "edges": [{"cursor": "...", "node": {"id": ..., "tags": [...],
                   "data": {"size": "..."}, "block": {"timestamp": ...}}}]
    }}}

into an [IndexPage][weavefeed.models.post.IndexPage]. Only index metadata is
fetched here; payloads are the [Hydrator][weavefeed.gateway.hydrator.Hydrator]'s
job.

Note:
    An envelope with zero edges is a valid empty page. A response that
    cannot be decoded into the shape above -- missing ``data``, GraphQL
    ``errors`` without data, non-list ``edges``, a node without ``id`` --
    is a [TransportError][weavefeed.core.exceptions.TransportError], so
    callers can always tell "nothing matched" from "the index is broken".
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Mapping
from typing import Any

from weavefeed.core.exceptions import TransportError
from weavefeed.core.metrics import INDEX_LATENCY_SECONDS, INDEX_REQUESTS
from weavefeed.models import IndexPage, QuerySpec, TxReference

from .client import GatewayClient


logger = logging.getLogger("weavefeed.gateway")


def parse_envelope(payload: Any) -> IndexPage:
    """Decode a GraphQL ``transactions`` response into an ``IndexPage``.

    ``next_cursor`` is the cursor of the last edge, and only when
    ``pageInfo.hasNextPage`` is true. A missing ``pageInfo`` is read as
    "no further pages".

    Raises:
        TransportError: If the envelope is malformed or carries GraphQL
            errors instead of data.
    """
    if not isinstance(payload, Mapping):
        raise TransportError(f"malformed envelope: expected object, got {type(payload).__name__}")

    data = payload.get("data")
    if data is None:
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, Mapping) else str(err)
                for err in errors
            )
            raise TransportError(f"index returned errors: {messages}")
        raise TransportError("malformed envelope: missing 'data'")

    transactions = data.get("transactions") if isinstance(data, Mapping) else None
    if not isinstance(transactions, Mapping):
        raise TransportError("malformed envelope: missing 'data.transactions'")

    edges = transactions.get("edges")
    if not isinstance(edges, list):
        raise TransportError("malformed envelope: 'edges' is not a list")

    try:
        refs = tuple(TxReference.from_node(edge["node"]) for edge in edges)
    except (KeyError, TypeError, ValueError) as e:
        raise TransportError(f"malformed edge: {e!r}") from e

    next_cursor: str | None = None
    page_info = transactions.get("pageInfo")
    if edges and isinstance(page_info, Mapping) and page_info.get("hasNextPage") is True:
        last_cursor = edges[-1].get("cursor")
        if not isinstance(last_cursor, str) or not last_cursor:
            raise TransportError("malformed envelope: hasNextPage without an edge cursor")
        next_cursor = last_cursor

    return IndexPage(refs=refs, next_cursor=next_cursor)


class IndexClient:
    """Executes index queries through a [GatewayClient][weavefeed.gateway.client.GatewayClient].

    Examples:
        ```python
        async with GatewayClient() as gateway:
            index = IndexClient(gateway)
            page = await index.fetch_page(spec, timeout=10.0)
            for ref in page:
                print(ref.id, ref.block_timestamp)
        ```
    """

    def __init__(self, gateway: GatewayClient) -> None:
        self._gateway = gateway

    async def fetch_page(
        self,
        spec: QuerySpec,
        *,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> IndexPage:
        """Fetch one page of transaction references.

        Idempotent: safe to retry after a ``TransportError``.

        Args:
            spec: The query to run.
            timeout: Request timeout in seconds (default: gateway config).

        Returns:
            The decoded [IndexPage][weavefeed.models.post.IndexPage]; empty when
            nothing matched.

        Raises:
            TransportError: On transport failure (``timeout=True`` when the
                request timed out) or a malformed envelope.
        """
        started = time.monotonic()
        try:
            payload = await self._gateway.post_graphql(spec.to_body(), timeout=timeout)
            page = parse_envelope(payload)
        except TransportError as e:
            INDEX_REQUESTS.labels(outcome="error").inc()
            logger.warning(
                "index_fetch_failed cursor=%s timeout=%s error=%s", spec.cursor, e.timeout, e
            )
            raise
        finally:
            INDEX_LATENCY_SECONDS.observe(time.monotonic() - started)

        INDEX_REQUESTS.labels(outcome="ok" if page.refs else "empty").inc()
        logger.debug(
            "index_fetch_succeeded refs=%s has_more=%s cursor=%s",
            len(page.refs),
            page.has_more,
            spec.cursor,
        )
        return page

    async def iter_pages(
        self,
        spec: QuerySpec,
        *,
        max_pages: int | None = None,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> AsyncIterator[IndexPage]:
        """Yield successive pages, following cursors until exhausted.

        Args:
            spec: The first page's query; later pages reuse it with the
                returned cursor.
            max_pages: Stop after this many pages (``None`` for no limit).
            timeout: Per-request timeout in seconds.

        Raises:
            TransportError: If any page fails; pages already yielded stand.
        """
        fetched = 0
        current: QuerySpec | None = spec
        while current is not None and (max_pages is None or fetched < max_pages):
            page = await self.fetch_page(current, timeout=timeout)
            fetched += 1
            yield page
            current = spec.with_cursor(page.next_cursor) if page.has_more else None

    async def fetch_transaction(
        self,
        tx_id: str,
        *,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> dict[str, Any]:
        """Fetch the JSON metadata envelope of a single transaction (``/tx/{id}``).

        Not used by hydration; payloads come from the content endpoint.

        Raises:
            NotFoundError: If the gateway does not know the transaction.
            TransportError: On transport failure or a non-object response.
        """
        envelope = await self._gateway.fetch_tx(tx_id, timeout=timeout)
        if not isinstance(envelope, dict):
            raise TransportError(
                f"malformed transaction envelope: expected object, got {type(envelope).__name__}",
                url=self._gateway.tx_url(tx_id),
            )
        return envelope
