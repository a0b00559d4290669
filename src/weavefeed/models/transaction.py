"""
Lightweight transaction reference returned by the gateway index.

A [TxReference][weavefeed.models.transaction.TxReference] holds only index
metadata -- identifier, tags, payload size, and block timestamp. The payload
itself is fetched later by the
[Hydrator][weavefeed.gateway.hydrator.Hydrator].
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ._validation import (
    validate_instance,
    validate_non_negative_int,
    validate_str_not_empty,
)
from .tag import Tag


@dataclass(frozen=True, slots=True)
class TxReference:
    """Immutable index entry for a single transaction.

    Attributes:
        id: Content-address of the transaction (unique).
        tags: Tags in the order reported by the index.
        size_bytes: Payload size in bytes.
        block_timestamp: Unix timestamp of the containing block, or ``None``
            while the transaction is unconfirmed.

    Raises:
        ValueError: If ``id`` is empty or a number is negative.
        TypeError: If a field has the wrong type.

    Examples:
        ```python
        ref = TxReference.from_node({
            "id": "tx1",
            "tags": [{"name": "App-Name", "value": "PublicSquare"}],
            "data": {"size": "5"},
            "block": {"timestamp": 1700000000},
        })
        ref.tag_value("App-Name")   # 'PublicSquare'
        ref.confirmed               # True
        ```
    """

    id: str
    tags: tuple[Tag, ...] = ()
    size_bytes: int = 0
    block_timestamp: int | None = None

    def __post_init__(self) -> None:
        validate_str_not_empty(self.id, "id")
        tags = tuple(self.tags)
        for i, tag in enumerate(tags):
            validate_instance(tag, Tag, f"tags[{i}]")
        object.__setattr__(self, "tags", tags)
        validate_non_negative_int(self.size_bytes, "size_bytes")
        if self.block_timestamp is not None:
            validate_non_negative_int(self.block_timestamp, "block_timestamp")

    @property
    def confirmed(self) -> bool:
        return self.block_timestamp is not None

    def tag_value(self, name: str) -> str | None:
        """Return the value of the first tag named *name*, or ``None``."""
        for tag in self.tags:
            if tag.name == name:
                return tag.value
        return None

    @classmethod
    def from_node(cls, node: Mapping[str, Any]) -> TxReference:
        """Parse a GraphQL ``transactions.edges[].node`` object.

        The gateway reports ``data.size`` as a decimal string and ``block``
        as ``null`` for pending transactions; both are normalized here.

        Raises:
            KeyError: If ``id`` is missing.
            ValueError: If a field cannot be converted.
            TypeError: If a field has the wrong type.
        """
        validate_instance(node, Mapping, "node")
        raw_tags = node.get("tags") or []
        validate_instance(raw_tags, list, "tags")

        data = node.get("data") or {}
        validate_instance(data, Mapping, "data")
        size = data.get("size")
        size_bytes = int(size) if size is not None else 0

        block = node.get("block")
        timestamp: int | None = None
        if block is not None:
            validate_instance(block, Mapping, "block")
            if block.get("timestamp") is not None:
                timestamp = int(block["timestamp"])

        return cls(
            id=node["id"],
            tags=tuple(Tag.from_dict(t) for t in raw_tags),
            size_bytes=size_bytes,
            block_timestamp=timestamp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tags": [t.to_dict() for t in self.tags],
            "size_bytes": self.size_bytes,
            "block_timestamp": self.block_timestamp,
        }
