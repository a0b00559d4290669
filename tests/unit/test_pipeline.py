"""
Unit tests for the pipeline module.

Tests:
- End-to-end fetch over a stub gateway (plan -> index -> hydrate -> assemble)
- Error policy: index failures abort, hydration failures are per item
- Cancellation through a caller-supplied event and through task cancellation
- Multi-page iteration following cursors
- Construction from dicts and YAML files
"""

import asyncio
import json
import logging
from pathlib import Path

import pytest

from tests.fixtures.gateway import StubGateway, make_envelope
from weavefeed.core.exceptions import (
    Cancelled,
    ConfigurationError,
    InvalidArgument,
    TransportError,
)
from weavefeed.gateway import GatewayClient
from weavefeed.models import ErrorKind, SortOrder, TagFilter
from weavefeed.pipeline import FeedPipeline, PipelineConfig


PUBLIC_SQUARE = {
    "query": {
        "filters": [
            {"name": "App-Name", "values": ["PublicSquare"]},
            {"name": "Content-Type", "values": ["text/plain"]},
        ],
        "page_size": 10,
        "sort_order": "newest_first",
    }
}


def _pipeline(gateway: StubGateway, data: dict | None = None) -> FeedPipeline:
    return FeedPipeline(PipelineConfig.model_validate(data or PUBLIC_SQUARE), gateway=gateway)


def _query(body: bytes) -> str:
    return json.loads(body)["query"]


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    """Factories and accessors."""

    def test_defaults(self):
        pipeline = FeedPipeline()
        assert pipeline.config.hydrator.concurrency == 8
        assert pipeline.planner.config.page_size == 10
        assert isinstance(pipeline._gateway, GatewayClient)

    def test_from_dict(self):
        pipeline = FeedPipeline.from_dict({"hydrator": {"concurrency": 3}, **PUBLIC_SQUARE})
        assert pipeline.hydrator.config.concurrency == 3
        assert len(pipeline.planner.config.filters) == 2

    def test_from_dict_invalid(self):
        with pytest.raises(ConfigurationError, match="invalid pipeline configuration"):
            FeedPipeline.from_dict({"hydrator": {"concurrency": 0}})

    def test_from_dict_unknown_sort(self):
        with pytest.raises(ConfigurationError):
            FeedPipeline.from_dict({"query": {"sort_order": "random"}})

    def test_from_yaml(self, tmp_path: Path):
        path = tmp_path / "feed.yaml"
        path.write_text(
            "gateway:\n"
            "  base_url: https://gateway.test/\n"
            "hydrator:\n"
            "  cache_size: 50\n"
            "query:\n"
            "  filters:\n"
            "    - {name: App-Name, values: [PublicSquare]}\n",
            encoding="utf-8",
        )
        pipeline = FeedPipeline.from_yaml(path)
        assert pipeline.config.gateway.base_url == "https://gateway.test"
        assert pipeline.hydrator.cache is not None

    def test_from_yaml_missing(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            FeedPipeline.from_yaml(tmp_path / "nope.yaml")

    def test_shipped_config_is_valid(self):
        config_path = Path(__file__).parents[2] / "config" / "feed.yaml"
        pipeline = FeedPipeline.from_yaml(config_path)
        assert pipeline.planner.plan().filters


# ============================================================================
# Fetch
# ============================================================================


class TestFetch:
    """Single-page fetches."""

    async def test_public_square_feed(self, public_square_gateway: StubGateway):
        async with _pipeline(public_square_gateway) as pipeline:
            page = await pipeline.fetch()

        assert public_square_gateway.opened
        assert public_square_gateway.closed
        assert [(p.id, p.content) for p in page] == [("tx1", "hello"), ("tx2", "world")]
        assert page.next_cursor is None
        assert not page.has_more

        query = _query(public_square_gateway.bodies[0])
        assert 'tags: [{name: "App-Name", values: ["PublicSquare"]}' in query
        assert "first: 10" in query
        assert "sort: HEIGHT_DESC" in query

    async def test_arguments_override_config(self, public_square_gateway: StubGateway):
        pipeline = _pipeline(public_square_gateway)
        await pipeline.fetch(
            [TagFilter("App-Name", ("Other",))],
            page_size=2,
            sort_order=SortOrder.OLDEST_FIRST,
            cursor="c0",
        )
        query = _query(public_square_gateway.bodies[0])
        assert '"Other"' in query
        assert "PublicSquare" not in query
        assert "first: 2" in query
        assert "sort: HEIGHT_ASC" in query
        assert 'after: "c0"' in query

    async def test_index_timeout_passed_through(self, public_square_gateway: StubGateway):
        pipeline = _pipeline(public_square_gateway)
        await pipeline.fetch(timeout=3.5)
        await pipeline.fetch()
        assert public_square_gateway.index_timeouts == [3.5, None]

    async def test_next_cursor_surfaces(self):
        gateway = StubGateway(
            [make_envelope("tx1", "tx2", has_next_page=True)],
            payloads={"tx1": b"a", "tx2": b"b"},
        )
        page = await _pipeline(gateway).fetch()
        assert page.next_cursor == "cursor-tx2"

    async def test_empty_index(self):
        gateway = StubGateway([make_envelope()])
        page = await _pipeline(gateway).fetch()
        assert len(page) == 0
        assert gateway.fetch_order == []

    async def test_missing_payload_is_per_item(self):
        gateway = StubGateway([make_envelope("tx1", "tx2", "tx3")], payloads={"tx1": b"a", "tx3": b"c"})
        page = await _pipeline(gateway).fetch()

        assert [p.id for p in page] == ["tx1", "tx2", "tx3"]
        assert page.items[1].error is ErrorKind.NOT_FOUND
        assert [p.id for p in page.failed] == ["tx2"]
        assert [p.content for p in page.succeeded] == ["a", "c"]

    async def test_order_follows_index_not_completion(self):
        gateway = StubGateway(
            [make_envelope("tx1", "tx2", "tx3")],
            payloads={"tx1": b"1", "tx2": b"2", "tx3": b"3"},
            delays={"tx1": 0.03, "tx2": 0.0, "tx3": 0.01},
        )
        page = await _pipeline(gateway).fetch()
        assert [p.content for p in page] == ["1", "2", "3"]
        assert gateway.completed != ["tx1", "tx2", "tx3"]

    async def test_index_failure_aborts(self):
        gateway = StubGateway([TransportError("HTTP 503", status=503)], payloads={"tx1": b"a"})
        with pytest.raises(TransportError):
            await _pipeline(gateway).fetch()
        assert gateway.fetch_order == []

    async def test_invalid_arguments_send_nothing(self, public_square_gateway: StubGateway):
        with pytest.raises(InvalidArgument):
            await _pipeline(public_square_gateway).fetch(page_size=0)
        assert public_square_gateway.bodies == []

    async def test_invalid_concurrency(self, public_square_gateway: StubGateway):
        with pytest.raises(InvalidArgument):
            await _pipeline(public_square_gateway).fetch(concurrency=0)

    async def test_logs_page_summary(
        self, public_square_gateway: StubGateway, caplog: pytest.LogCaptureFixture
    ):
        caplog.set_level(logging.INFO, logger="weavefeed.pipeline")
        await _pipeline(public_square_gateway).fetch()
        [record] = [r for r in caplog.records if r.getMessage() == "page_fetched"]
        assert record.structured_kv["items"] == "2"
        assert record.structured_kv["failed"] == "0"


# ============================================================================
# Cancellation
# ============================================================================


class TestCancellation:
    """Caller-initiated aborts."""

    async def test_cancel_during_hydration(self, public_square_gateway: StubGateway):
        public_square_gateway.gate = asyncio.Event()
        cancel = asyncio.Event()
        task = asyncio.create_task(_pipeline(public_square_gateway).fetch(cancel=cancel))
        await public_square_gateway.started.wait()

        cancel.set()
        with pytest.raises(Cancelled):
            await task

        assert public_square_gateway.completed == []
        assert public_square_gateway.in_flight == 0

    async def test_cancel_already_set(self, public_square_gateway: StubGateway):
        cancel = asyncio.Event()
        cancel.set()
        with pytest.raises(Cancelled):
            await _pipeline(public_square_gateway).fetch(cancel=cancel)
        assert public_square_gateway.bodies == []

    async def test_unset_cancel_does_not_interfere(self, public_square_gateway: StubGateway):
        page = await _pipeline(public_square_gateway).fetch(cancel=asyncio.Event())
        assert len(page.succeeded) == 2

    async def test_no_tasks_left_behind(self, public_square_gateway: StubGateway):
        await _pipeline(public_square_gateway).fetch(cancel=asyncio.Event())
        assert asyncio.all_tasks() == {asyncio.current_task()}

    async def test_no_tasks_left_behind_after_cancel(self, public_square_gateway: StubGateway):
        public_square_gateway.gate = asyncio.Event()
        cancel = asyncio.Event()
        task = asyncio.create_task(_pipeline(public_square_gateway).fetch(cancel=cancel))
        await public_square_gateway.started.wait()

        cancel.set()
        with pytest.raises(Cancelled):
            await task
        assert asyncio.all_tasks() == {asyncio.current_task()}

    async def test_errors_pass_through_cancellable_path(self):
        gateway = StubGateway([TransportError("HTTP 500", status=500)])
        with pytest.raises(TransportError):
            await _pipeline(gateway).fetch(cancel=asyncio.Event())

    async def test_task_cancellation_propagates(self, public_square_gateway: StubGateway):
        public_square_gateway.gate = asyncio.Event()
        task = asyncio.create_task(
            _pipeline(public_square_gateway).fetch(cancel=asyncio.Event())
        )
        await public_square_gateway.started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert public_square_gateway.in_flight == 0


# ============================================================================
# Pagination
# ============================================================================


class TestIterPages:
    """Cursor-following iteration."""

    async def test_follows_cursors(self):
        gateway = StubGateway(
            [
                make_envelope("tx1", "tx2", has_next_page=True),
                make_envelope("tx3"),
            ],
            payloads={"tx1": b"a", "tx2": b"b", "tx3": b"c"},
        )
        pages = [page async for page in _pipeline(gateway).iter_pages()]

        assert [[p.content for p in page] for page in pages] == [["a", "b"], ["c"]]
        assert 'after: "cursor-tx2"' in _query(gateway.bodies[1])
        assert "PublicSquare" in _query(gateway.bodies[1])

    async def test_max_pages(self):
        gateway = StubGateway([make_envelope("tx1", has_next_page=True)], payloads={"tx1": b"a"})
        pages = [page async for page in _pipeline(gateway).iter_pages(max_pages=2)]
        assert len(pages) == 2
        assert pages[-1].has_more

    async def test_timeout_applies_to_every_page(self):
        gateway = StubGateway([make_envelope("tx1", has_next_page=True)], payloads={"tx1": b"a"})
        pages = [
            page async for page in _pipeline(gateway).iter_pages(max_pages=3, timeout=2.0)
        ]
        assert len(pages) == 3
        assert gateway.index_timeouts == [2.0, 2.0, 2.0]

    @pytest.mark.parametrize("max_pages", [0, -1, True, "2"])
    async def test_invalid_max_pages(self, public_square_gateway: StubGateway, max_pages):
        with pytest.raises(InvalidArgument, match="max_pages"):
            async for _ in _pipeline(public_square_gateway).iter_pages(max_pages=max_pages):
                pass
