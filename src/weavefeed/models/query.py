"""
Immutable index query with deterministic GraphQL serialization.

A [QuerySpec][weavefeed.models.query.QuerySpec] captures everything needed to
request one page from the gateway's transaction index: tag filters, page
size, sort order, and an optional pagination cursor. Serialization is
canonical -- filters are deduplicated and sorted -- so identical inputs
always produce a byte-identical request body, which makes queries usable
as cache keys and easy to assert on in tests.

See Also:
    [build_query][weavefeed.gateway.planner.build_query]: Validating factory
        that converts model errors into
        [InvalidArgument][weavefeed.core.exceptions.InvalidArgument].
    [IndexClient][weavefeed.gateway.index.IndexClient]: Sends the serialized
        query to the gateway.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any

from ._validation import validate_instance, validate_str_not_empty
from .constants import MAX_PAGE_SIZE, SortOrder
from .tag import TagFilter


# Fields selected for every transaction node
_NODE_SELECTION = "id tags { name value } data { size } block { timestamp }"


def _quote(value: str) -> str:
    """Render a GraphQL string literal (JSON escaping is a valid subset)."""
    return json.dumps(value)


@dataclass(frozen=True, slots=True)
class QuerySpec:
    """Immutable description of one index page request.

    Attributes:
        filters: Canonical tuple of [TagFilter][weavefeed.models.tag.TagFilter]
            objects (duplicates removed, sorted by name then values).
        page_size: Number of edges to request, in ``[1, MAX_PAGE_SIZE]``.
        sort_order: [SortOrder][weavefeed.models.constants.SortOrder] by block height.
        cursor: Opaque pagination token from a previous page, or ``None``
            for the first page.

    Raises:
        ValueError: If ``page_size`` is out of range, ``cursor`` is empty,
            or ``sort_order`` is not a known value.
        TypeError: If a field has the wrong type.

    Examples:
        ```python
        spec = QuerySpec(
            filters=(TagFilter("App-Name", ("PublicSquare",)),),
            page_size=10,
            sort_order=SortOrder.NEWEST_FIRST,
        )
        spec.to_payload()   # {'query': 'query { transactions(tags: [...], ...'}
        ```
    """

    filters: tuple[TagFilter, ...] = ()
    page_size: int = 10
    sort_order: SortOrder = SortOrder.NEWEST_FIRST
    cursor: str | None = None
    _graphql: str = field(default="", init=False, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        filters = tuple(self.filters)
        for i, tag_filter in enumerate(filters):
            validate_instance(tag_filter, TagFilter, f"filters[{i}]")
        object.__setattr__(self, "filters", tuple(sorted(set(filters))))

        if isinstance(self.page_size, bool) or not isinstance(self.page_size, int):
            raise TypeError(f"page_size must be an int, got {type(self.page_size).__name__}")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {self.page_size}")

        object.__setattr__(self, "sort_order", SortOrder(self.sort_order))

        if self.cursor is not None:
            validate_str_not_empty(self.cursor, "cursor")

        object.__setattr__(self, "_graphql", self._render())

    def _render(self) -> str:
        args: list[str] = []
        if self.filters:
            rendered = ", ".join(
                f"{{name: {_quote(f.name)}, values: [{', '.join(_quote(v) for v in f.values)}]}}"
                for f in self.filters
            )
            args.append(f"tags: [{rendered}]")
        args.append(f"first: {self.page_size}")
        args.append(f"sort: {self.sort_order.wire}")
        if self.cursor is not None:
            args.append(f"after: {_quote(self.cursor)}")
        return (
            f"query {{ transactions({', '.join(args)}) {{ "
            f"pageInfo {{ hasNextPage }} "
            f"edges {{ cursor node {{ {_NODE_SELECTION} }} }} }} }}"
        )

    def to_graphql(self) -> str:
        """Return the GraphQL query string."""
        return self._graphql

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON request envelope ``{"query": ...}``."""
        return {"query": self._graphql}

    def to_body(self) -> bytes:
        """Return the canonical UTF-8 JSON request body."""
        return json.dumps(self.to_payload(), separators=(",", ":"), sort_keys=True).encode()

    def with_cursor(self, cursor: str | None) -> QuerySpec:
        """Return a copy of this query positioned at *cursor*."""
        return replace(self, cursor=cursor)
