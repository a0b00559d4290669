"""
Query-and-hydrate pipeline over a single gateway session.

[FeedPipeline][weavefeed.pipeline.FeedPipeline] wires the four stages::

    QueryPlanner -> IndexClient -> Hydrator -> assemble -> ResultPage

and is the only object a UI or service layer needs. It holds no per-request
state: each call plans its own query, fetches its own references, and
returns a fresh [ResultPage][weavefeed.models.post.ResultPage].

Error policy:
    * Planning and index errors (``InvalidArgument``, ``TransportError``)
      abort the call before any page is produced.
    * Hydration errors are attached per item and never abort the page.
    * A caller-supplied ``cancel`` event aborts the call with
      [Cancelled][weavefeed.core.exceptions.Cancelled]; in-flight requests are
      cancelled and completed hydrations discarded. Cancelling the calling
      task itself propagates ``asyncio.CancelledError`` unchanged.
    * Retries are the caller's responsibility.

Examples:
    ```python
    async with FeedPipeline.from_yaml("config/feed.yaml") as pipeline:
        page = await pipeline.fetch(
            [{"name": "App-Name", "values": ["PublicSquare"]}],
            page_size=10,
        )
        for post in page:
            print(post.ref.block_timestamp, post.content)
    ```
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Coroutine, Iterable
from pathlib import Path
from types import TracebackType
from typing import Any, Self, TypeVar

from pydantic import BaseModel, Field, ValidationError

from weavefeed.core.exceptions import Cancelled, ConfigurationError, InvalidArgument
from weavefeed.core.logger import Logger
from weavefeed.core.yaml import load_yaml
from weavefeed.gateway import (
    GatewayClient,
    GatewayConfig,
    Hydrator,
    HydratorConfig,
    IndexClient,
    QueryConfig,
    QueryPlanner,
    assemble,
)
from weavefeed.gateway.planner import FilterInput
from weavefeed.models import QuerySpec, ResultPage, SortOrder


T = TypeVar("T")


class PipelineConfig(BaseModel):
    """Top-level configuration, usually loaded from YAML.

    Example YAML::

        gateway:
          base_url: https://arweave.net
          timeouts: {index: 15, content: 20}
        hydrator:
          concurrency: 5
          cache_size: 500
        query:
          page_size: 10
          sort_order: newest_first
          filters:
            - {name: App-Name, values: [PublicSquare]}
            - {name: Content-Type, values: [text/plain]}
    """

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    hydrator: HydratorConfig = Field(default_factory=HydratorConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)


class FeedPipeline:
    """Tagged-transaction query-and-hydrate pipeline.

    Use as an async context manager; the gateway session is opened on entry
    and closed on exit. A caller-provided ``gateway`` is opened and closed
    the same way (its own session ownership rules still apply).
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        gateway: GatewayClient | None = None,
    ) -> None:
        self._config = config or PipelineConfig()
        self._gateway = gateway or GatewayClient(self._config.gateway)
        self._planner = QueryPlanner(self._config.query)
        self._index = IndexClient(self._gateway)
        self._hydrator = Hydrator(self._gateway, self._config.hydrator)
        self._logger = Logger("weavefeed.pipeline")

    # -------------------------------------------------------------------------
    # Factories
    # -------------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any], **kwargs: Any) -> Self:
        """Build a pipeline from a configuration mapping.

        Raises:
            ConfigurationError: If the mapping fails validation.
        """
        try:
            config = PipelineConfig.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"invalid pipeline configuration: {e}") from e
        return cls(config, **kwargs)

    @classmethod
    def from_yaml(cls, config_path: str | Path, **kwargs: Any) -> Self:
        """Build a pipeline from a YAML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigurationError: If the file is not valid YAML or fails validation.
        """
        return cls.from_dict(load_yaml(config_path), **kwargs)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def planner(self) -> QueryPlanner:
        return self._planner

    @property
    def index(self) -> IndexClient:
        return self._index

    @property
    def hydrator(self) -> Hydrator:
        return self._hydrator

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> Self:
        await self._gateway.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self._gateway.close()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def fetch(  # noqa: PLR0913
        self,
        filters: Iterable[FilterInput] | None = None,
        *,
        page_size: int | None = None,
        sort_order: SortOrder | str | None = None,
        cursor: str | None = None,
        concurrency: int | None = None,
        timeout: float | None = None,  # noqa: ASYNC109
        cancel: asyncio.Event | None = None,
    ) -> ResultPage:
        """Plan, query, hydrate, and assemble one page.

        Arguments left as ``None`` fall back to the ``query`` / ``hydrator``
        configuration; *timeout* bounds the index request and defaults to
        the gateway's ``timeouts.index``.

        Raises:
            InvalidArgument: If the query arguments are invalid.
            TransportError: If the index request fails.
            Cancelled: If *cancel* is set before the page is complete.
        """
        spec = self._planner.plan(
            filters, page_size=page_size, sort_order=sort_order, cursor=cursor
        )
        return await self.fetch_spec(
            spec, concurrency=concurrency, timeout=timeout, cancel=cancel
        )

    async def fetch_spec(
        self,
        spec: QuerySpec,
        *,
        concurrency: int | None = None,
        timeout: float | None = None,  # noqa: ASYNC109
        cancel: asyncio.Event | None = None,
    ) -> ResultPage:
        """Run the pipeline for an already planned query.

        Raises:
            TransportError: If the index request fails.
            Cancelled: If *cancel* is set before the page is complete.
        """
        return await _run_cancellable(self._run(spec, concurrency, timeout), cancel)

    async def iter_pages(  # noqa: PLR0913
        self,
        filters: Iterable[FilterInput] | None = None,
        *,
        page_size: int | None = None,
        sort_order: SortOrder | str | None = None,
        cursor: str | None = None,
        concurrency: int | None = None,
        max_pages: int | None = None,
        timeout: float | None = None,  # noqa: ASYNC109
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[ResultPage]:
        """Yield hydrated pages, following cursors until exhausted or *max_pages*.

        Raises:
            InvalidArgument: If the query arguments or *max_pages* are invalid.
            TransportError: If an index request fails; earlier pages stand.
            Cancelled: If *cancel* is set while a page is in progress.
        """
        if max_pages is not None and (
            isinstance(max_pages, bool) or not isinstance(max_pages, int) or max_pages < 1
        ):
            raise InvalidArgument(f"max_pages must be a positive integer, got {max_pages!r}")

        spec = self._planner.plan(
            filters, page_size=page_size, sort_order=sort_order, cursor=cursor
        )
        fetched = 0
        while True:
            page = await self.fetch_spec(
                spec, concurrency=concurrency, timeout=timeout, cancel=cancel
            )
            fetched += 1
            yield page
            if page.next_cursor is None or (max_pages is not None and fetched >= max_pages):
                return
            spec = spec.with_cursor(page.next_cursor)

    async def _run(
        self,
        spec: QuerySpec,
        concurrency: int | None,
        timeout: float | None,  # noqa: ASYNC109
    ) -> ResultPage:
        index_page = await self._index.fetch_page(spec, timeout=timeout)
        posts = await self._hydrator.hydrate(index_page.refs, concurrency)
        page = assemble(index_page.refs, posts, index_page.next_cursor)
        self._logger.info(
            "page_fetched",
            items=len(page),
            failed=len(page.failed),
            has_more=page.has_more,
            sort=spec.sort_order,
        )
        return page


async def _run_cancellable(work: Coroutine[Any, Any, T], cancel: asyncio.Event | None) -> T:
    """Await *work*, aborting with ``Cancelled`` if *cancel* fires first.

    Both the work task and the cancel waiter are finished (cancelled and
    awaited) before this returns or raises, so no task outlives the call.
    """
    if cancel is None:
        return await work
    if cancel.is_set():
        work.close()
        raise Cancelled("cancelled before start")

    task = asyncio.create_task(work)
    waiter = asyncio.create_task(cancel.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()
        await asyncio.gather(task, waiter, return_exceptions=True)

    if task.cancelled():
        raise Cancelled("cancelled while in progress")
    return task.result()
