"""Tests for weavefeed.models.post module."""

import pytest

from weavefeed.models import ErrorKind, HydratedPost, IndexPage, ResultPage, TxReference


REF = TxReference("tx1", size_bytes=5, block_timestamp=1700000000)


class TestHydratedPost:
    """Exactly-one-of content/error."""

    def test_succeeded(self):
        post = HydratedPost.succeeded(REF, "hello")
        assert post.ok
        assert post.id == "tx1"
        assert post.content == "hello"
        assert post.error is None

    def test_empty_content_is_success(self):
        assert HydratedPost.succeeded(REF, "").ok

    def test_failed(self):
        post = HydratedPost.failed(REF, ErrorKind.NOT_FOUND, "HTTP 404")
        assert not post.ok
        assert post.content is None
        assert post.error is ErrorKind.NOT_FOUND
        assert post.reason == "HTTP 404"

    def test_error_string_coerced(self):
        assert HydratedPost(REF, error="timeout").error is ErrorKind.TIMEOUT

    def test_both_set_rejected(self):
        with pytest.raises(ValueError, match="exactly one"):
            HydratedPost(REF, content="x", error=ErrorKind.DECODE)

    def test_neither_set_rejected(self):
        with pytest.raises(ValueError, match="exactly one"):
            HydratedPost(REF)

    def test_reason_on_success_rejected(self):
        with pytest.raises(ValueError, match="reason"):
            HydratedPost(REF, content="x", reason="why")

    def test_to_dict(self):
        data = HydratedPost.failed(REF, ErrorKind.DECODE, "bad bytes").to_dict()
        assert data["id"] == "tx1"
        assert data["content"] is None
        assert data["error"] == "decode"
        assert data["reason"] == "bad bytes"


class TestErrorKind:
    """Retry classification."""

    @pytest.mark.parametrize(
        ("kind", "retryable"),
        [
            (ErrorKind.TRANSPORT, True),
            (ErrorKind.TIMEOUT, True),
            (ErrorKind.NOT_FOUND, True),
            (ErrorKind.DECODE, False),
        ],
    )
    def test_retryable(self, kind: ErrorKind, retryable: bool):
        assert kind.retryable is retryable


class TestIndexPage:
    """Reference pages from the index."""

    def test_empty(self):
        page = IndexPage()
        assert len(page) == 0
        assert not page.has_more

    def test_iteration_and_cursor(self):
        page = IndexPage(refs=[REF], next_cursor="c1")
        assert list(page) == [REF]
        assert page.has_more

    def test_empty_cursor_rejected(self):
        with pytest.raises(ValueError):
            IndexPage(next_cursor="")


class TestResultPage:
    """Hydrated result pages."""

    def test_partitions(self):
        ok = HydratedPost.succeeded(REF, "hello")
        bad = HydratedPost.failed(TxReference("tx2"), ErrorKind.TRANSPORT)
        page = ResultPage(items=[ok, bad])
        assert len(page) == 2
        assert page.succeeded == (ok,)
        assert page.failed == (bad,)
        assert not page.has_more

    def test_non_post_rejected(self):
        with pytest.raises(TypeError, match="items\\[0\\]"):
            ResultPage(items=[REF])

    def test_to_dict(self):
        page = ResultPage(items=[HydratedPost.succeeded(REF, "hi")], next_cursor="c9")
        data = page.to_dict()
        assert data["next_cursor"] == "c9"
        assert data["items"][0]["content"] == "hi"
