"""
Hydration: bounded-concurrency payload fetching with per-item failure capture.

Given the [TxReference][weavefeed.models.transaction.TxReference] list of an
index page, [Hydrator.hydrate][weavefeed.gateway.hydrator.Hydrator.hydrate]
fetches every payload from the content endpoint and decodes it as UTF-8.

Guarantees:
    * At most ``concurrency`` fetches are in flight (``asyncio.Semaphore``
      under an ``asyncio.TaskGroup``), so rate-limited gateways are never hit
      with an unbounded fan-out.
    * Output order equals input order: results are collected positionally
      from the task list, not in completion order.
    * A failed item (transport error, 404, timeout, undecodable bytes, or
      any other error raised by the fetch, recorded as ``TRANSPORT``)
      becomes a [HydratedPost][weavefeed.models.post.HydratedPost] carrying
      an [ErrorKind][weavefeed.models.constants.ErrorKind]; it never aborts
      the other items and never raises out of ``hydrate``.
    * ``asyncio.CancelledError`` is never caught: cancelling the caller
      cancels every in-flight fetch and no partial list is returned.

Payloads are immutable once committed, so an optional
[ContentCache][weavefeed.gateway.hydrator.ContentCache] can short-circuit
repeat fetches. Only successful decodes are cached.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Sequence

from weavefeed.core.exceptions import DecodeError, InvalidArgument, NotFoundError, TransportError
from weavefeed.core.metrics import HYDRATIONS
from weavefeed.models import ErrorKind, HydratedPost, TxReference

from .client import GatewayClient
from .configs import HydratorConfig


logger = logging.getLogger("weavefeed.gateway")


def decode_payload(raw: bytes) -> str:
    """Decode payload bytes as strict UTF-8.

    Raises:
        DecodeError: If the bytes are not valid UTF-8.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"payload is not valid UTF-8 at byte {e.start}") from e


class ContentCache:
    """Bounded LRU cache of decoded payloads keyed by transaction id."""

    def __init__(self, max_entries: int) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, str] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, tx_id: object) -> bool:
        return tx_id in self._entries

    def get(self, tx_id: str) -> str | None:
        content = self._entries.get(tx_id)
        if content is not None:
            self._entries.move_to_end(tx_id)
        return content

    def put(self, tx_id: str, content: str) -> None:
        self._entries[tx_id] = content
        self._entries.move_to_end(tx_id)
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()


class Hydrator:
    """Fetches and decodes transaction payloads with bounded concurrency.

    Examples:
        ```python
        hydrator = Hydrator(gateway, HydratorConfig(concurrency=5, timeout=10.0))
        posts = await hydrator.hydrate(page.refs)
        for post in posts:
            print(post.id, post.content if post.ok else post.error)
        ```
    """

    def __init__(
        self,
        gateway: GatewayClient,
        config: HydratorConfig | None = None,
        *,
        cache: ContentCache | None = None,
    ) -> None:
        self._gateway = gateway
        self._config = config or HydratorConfig()
        if cache is None and self._config.cache_size:
            cache = ContentCache(self._config.cache_size)
        self._cache = cache

    @property
    def config(self) -> HydratorConfig:
        return self._config

    @property
    def cache(self) -> ContentCache | None:
        return self._cache

    async def hydrate(
        self,
        refs: Sequence[TxReference],
        concurrency: int | None = None,
    ) -> list[HydratedPost]:
        """Hydrate every reference, preserving input order.

        Args:
            refs: References to hydrate, in display order.
            concurrency: Maximum in-flight fetches (default: config value).

        Returns:
            One [HydratedPost][weavefeed.models.post.HydratedPost] per
            reference, positionally aligned with *refs*.

        Raises:
            InvalidArgument: If *concurrency* is not a positive integer.
        """
        if concurrency is None:
            concurrency = self._config.concurrency
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise InvalidArgument(f"concurrency must be a positive integer, got {concurrency!r}")

        refs = list(refs)
        if not refs:
            return []

        semaphore = asyncio.Semaphore(concurrency)

        async def _bounded(ref: TxReference) -> HydratedPost:
            async with semaphore:
                return await self._hydrate_one(ref)

        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(_bounded(ref)) for ref in refs]

        posts = [task.result() for task in tasks]
        failed = sum(1 for post in posts if not post.ok)
        logger.debug(
            "hydration_completed total=%s failed=%s concurrency=%s",
            len(posts),
            failed,
            concurrency,
        )
        return posts

    async def _hydrate_one(self, ref: TxReference) -> HydratedPost:
        """Hydrate a single reference; every fetch or decode failure becomes an error post."""
        if self._cache is not None:
            cached = self._cache.get(ref.id)
            if cached is not None:
                HYDRATIONS.labels(outcome="cached").inc()
                return HydratedPost.succeeded(ref, cached)

        post: HydratedPost
        try:
            async with asyncio.timeout(self._config.timeout):
                raw = await self._gateway.fetch_data(ref.id)
            content = decode_payload(raw)
        except NotFoundError as e:
            post = HydratedPost.failed(ref, ErrorKind.NOT_FOUND, str(e))
        except TransportError as e:
            kind = ErrorKind.TIMEOUT if e.timeout else ErrorKind.TRANSPORT
            post = HydratedPost.failed(ref, kind, str(e))
        except TimeoutError:
            post = HydratedPost.failed(
                ref, ErrorKind.TIMEOUT, f"timed out after {self._config.timeout}s"
            )
        except DecodeError as e:
            post = HydratedPost.failed(ref, ErrorKind.DECODE, str(e))
        except Exception as e:
            logger.warning(
                "hydration_unexpected_error id=%s error_type=%s error=%s",
                ref.id,
                type(e).__name__,
                e,
            )
            post = HydratedPost.failed(ref, ErrorKind.TRANSPORT, f"{type(e).__name__}: {e}")
        else:
            post = HydratedPost.succeeded(ref, content)
            if self._cache is not None:
                self._cache.put(ref.id, content)

        if post.ok:
            HYDRATIONS.labels(outcome="ok").inc()
        else:
            HYDRATIONS.labels(outcome=str(post.error)).inc()
            logger.debug("hydration_failed id=%s error=%s reason=%s", ref.id, post.error, post.reason)
        return post
