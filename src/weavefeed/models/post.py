"""
Hydrated posts and result pages.

[HydratedPost][weavefeed.models.post.HydratedPost] pairs a
[TxReference][weavefeed.models.transaction.TxReference] with either its
decoded text payload or the reason hydration failed.
[IndexPage][weavefeed.models.post.IndexPage] is what the index returns (references
only); [ResultPage][weavefeed.models.post.ResultPage] is the render-ready
result after hydration, in index order.

See Also:
    [Hydrator][weavefeed.gateway.hydrator.Hydrator]: Produces
        ``HydratedPost`` records.
    [assemble][weavefeed.gateway.assembler.assemble]: Produces
        ``ResultPage`` records.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from ._validation import validate_instance, validate_str_no_null, validate_str_not_empty
from .constants import ErrorKind
from .transaction import TxReference


@dataclass(frozen=True, slots=True)
class HydratedPost:
    """Outcome of hydrating one transaction reference.

    Exactly one of ``content`` and ``error`` is set.

    Attributes:
        ref: The index reference that was hydrated.
        content: Decoded UTF-8 payload, or ``None`` if hydration failed.
        error: [ErrorKind][weavefeed.models.constants.ErrorKind] of the
            failure, or ``None`` on success.
        reason: Human-readable failure detail (only set with ``error``).

    Raises:
        ValueError: If both or neither of ``content`` and ``error`` are set,
            or ``reason`` is given for a successful post.
    """

    ref: TxReference
    content: str | None = None
    error: ErrorKind | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        validate_instance(self.ref, TxReference, "ref")
        if (self.content is None) == (self.error is None):
            raise ValueError("exactly one of content and error must be set")
        if self.content is not None:
            validate_instance(self.content, str, "content")
            if self.reason is not None:
                raise ValueError("reason is only allowed on failed posts")
        else:
            object.__setattr__(self, "error", ErrorKind(self.error))
            if self.reason is not None:
                validate_str_no_null(self.reason, "reason")

    @classmethod
    def succeeded(cls, ref: TxReference, content: str) -> HydratedPost:
        return cls(ref=ref, content=content)

    @classmethod
    def failed(cls, ref: TxReference, kind: ErrorKind, reason: str | None = None) -> HydratedPost:
        return cls(ref=ref, error=kind, reason=reason)

    @property
    def id(self) -> str:
        return self.ref.id

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.ref.to_dict(),
            "content": self.content,
            "error": str(self.error) if self.error is not None else None,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class IndexPage:
    """One page of index references, before hydration.

    Attributes:
        refs: References in index order.
        next_cursor: Cursor for the following page, or ``None`` when the
            index reported no further results.
    """

    refs: tuple[TxReference, ...] = ()
    next_cursor: str | None = None

    def __post_init__(self) -> None:
        refs = tuple(self.refs)
        for i, ref in enumerate(refs):
            validate_instance(ref, TxReference, f"refs[{i}]")
        object.__setattr__(self, "refs", refs)
        if self.next_cursor is not None:
            validate_str_not_empty(self.next_cursor, "next_cursor")

    def __len__(self) -> int:
        return len(self.refs)

    def __iter__(self) -> Iterator[TxReference]:
        return iter(self.refs)

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


@dataclass(frozen=True, slots=True)
class ResultPage:
    """Render-ready page of hydrated posts in index order.

    Attributes:
        items: Hydrated posts, ordered exactly as the index returned them.
        next_cursor: Cursor for the following page, or ``None``.

    Examples:
        ```python
        for post in page:
            print(post.content if post.ok else f"[unavailable: {post.error}]")
        if page.has_more:
            next_page = await pipeline.fetch(cursor=page.next_cursor)
        ```
    """

    items: tuple[HydratedPost, ...] = ()
    next_cursor: str | None = None

    def __post_init__(self) -> None:
        items = tuple(self.items)
        for i, item in enumerate(items):
            validate_instance(item, HydratedPost, f"items[{i}]")
        object.__setattr__(self, "items", items)
        if self.next_cursor is not None:
            validate_str_not_empty(self.next_cursor, "next_cursor")

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[HydratedPost]:
        return iter(self.items)

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None

    @property
    def succeeded(self) -> tuple[HydratedPost, ...]:
        return tuple(item for item in self.items if item.ok)

    @property
    def failed(self) -> tuple[HydratedPost, ...]:
        return tuple(item for item in self.items if not item.ok)

    def to_dict(self) -> dict[str, Any]:
        return {
            "items": [item.to_dict() for item in self.items],
            "next_cursor": self.next_cursor,
        }
