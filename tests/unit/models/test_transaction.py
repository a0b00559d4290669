"""Tests for weavefeed.models.transaction module."""

import pytest

from weavefeed.models import Tag, TxReference


NODE = {
    "id": "tx1",
    "tags": [
        {"name": "App-Name", "value": "PublicSquare"},
        {"name": "Content-Type", "value": "text/plain"},
    ],
    "data": {"size": "42"},
    "block": {"timestamp": 1700000000},
}


class TestConstruction:
    """Direct construction and validation."""

    def test_defaults(self):
        ref = TxReference("tx1")
        assert ref.tags == ()
        assert ref.size_bytes == 0
        assert ref.block_timestamp is None
        assert not ref.confirmed

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            TxReference("")

    def test_negative_size_rejected(self):
        with pytest.raises(ValueError, match="size_bytes"):
            TxReference("tx1", size_bytes=-1)

    def test_non_tag_rejected(self):
        with pytest.raises(TypeError, match="tags\\[0\\]"):
            TxReference("tx1", tags=({"name": "a", "value": "b"},))


class TestFromNode:
    """Parsing GraphQL nodes."""

    def test_full_node(self):
        ref = TxReference.from_node(NODE)
        assert ref.id == "tx1"
        assert ref.tags[0] == Tag("App-Name", "PublicSquare")
        assert ref.size_bytes == 42
        assert ref.block_timestamp == 1700000000
        assert ref.confirmed

    def test_pending_block_is_none(self):
        ref = TxReference.from_node({**NODE, "block": None})
        assert ref.block_timestamp is None
        assert not ref.confirmed

    def test_missing_optional_fields(self):
        ref = TxReference.from_node({"id": "tx1"})
        assert ref.tags == ()
        assert ref.size_bytes == 0

    def test_missing_id(self):
        with pytest.raises(KeyError):
            TxReference.from_node({"tags": []})

    def test_non_numeric_size(self):
        with pytest.raises(ValueError):
            TxReference.from_node({**NODE, "data": {"size": "big"}})

    def test_tags_not_a_list(self):
        with pytest.raises(TypeError):
            TxReference.from_node({**NODE, "tags": "App-Name"})


class TestAccessors:
    """tag_value() and to_dict()."""

    def test_tag_value(self):
        ref = TxReference.from_node(NODE)
        assert ref.tag_value("Content-Type") == "text/plain"
        assert ref.tag_value("Missing") is None

    def test_tag_value_returns_first_match(self):
        ref = TxReference("tx1", tags=(Tag("n", "a"), Tag("n", "b")))
        assert ref.tag_value("n") == "a"

    def test_to_dict(self):
        assert TxReference.from_node(NODE).to_dict() == {
            "id": "tx1",
            "tags": NODE["tags"],
            "size_bytes": 42,
            "block_timestamp": 1700000000,
        }
