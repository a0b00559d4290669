"""
Query planning: validated construction of index queries.

[build_query][weavefeed.gateway.planner.build_query] is the single entry point
for turning caller input into a [QuerySpec][weavefeed.models.query.QuerySpec].
It accepts filters either as [TagFilter][weavefeed.models.tag.TagFilter]
objects or as ``{"name": ..., "values": [...]}`` mappings (the shape used in
YAML configuration and by the CLI), and reports every validation failure as
[InvalidArgument][weavefeed.core.exceptions.InvalidArgument].

The function is pure: identical inputs produce a byte-identical
``QuerySpec.to_body()``, independent of the order filters were supplied in.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from weavefeed.core.exceptions import InvalidArgument
from weavefeed.models import QuerySpec, SortOrder, TagFilter

from .configs import QueryConfig


FilterInput = TagFilter | Mapping[str, Any]


def _coerce_filter(value: FilterInput) -> TagFilter:
    if isinstance(value, TagFilter):
        return value
    if isinstance(value, Mapping):
        return TagFilter.from_dict(value)
    raise TypeError(f"filter must be a TagFilter or mapping, got {type(value).__name__}")


def build_query(
    filters: Iterable[FilterInput],
    page_size: int,
    sort_order: SortOrder | str,
    cursor: str | None = None,
) -> QuerySpec:
    """Validate inputs and build an immutable index query.

    Args:
        filters: Tag filters; duplicates are collapsed and order is irrelevant.
        page_size: Edges per page, in ``[1, MAX_PAGE_SIZE]``.
        sort_order: A [SortOrder][weavefeed.models.constants.SortOrder] or
            its string value (``"newest_first"`` / ``"oldest_first"``).
        cursor: Pagination cursor from a previous page.

    Returns:
        The validated [QuerySpec][weavefeed.models.query.QuerySpec].

    Raises:
        InvalidArgument: If any argument is invalid. The original
            ``ValueError`` / ``TypeError`` is chained as ``__cause__``.

    Examples:
        ```python
        spec = build_query(
            [{"name": "App-Name", "values": ["PublicSquare"]}],
            page_size=10,
            sort_order=SortOrder.NEWEST_FIRST,
        )
        ```
    """
    if isinstance(filters, (str, bytes, Mapping)):
        raise InvalidArgument("filters must be an iterable of tag filters")
    try:
        tag_filters = tuple(_coerce_filter(f) for f in filters)
        return QuerySpec(
            filters=tag_filters,
            page_size=page_size,
            sort_order=SortOrder(sort_order),
            cursor=cursor,
        )
    except (TypeError, ValueError) as e:
        raise InvalidArgument(str(e)) from e


class QueryPlanner:
    """Builds queries from per-call arguments layered over configured defaults.

    Examples:
        ```python
        planner = QueryPlanner(QueryConfig(page_size=25))
        first = planner.plan([TagFilter("App-Name", ("PublicSquare",))])
        second = planner.plan(first.filters, cursor="opaque-cursor")
        ```
    """

    def __init__(self, config: QueryConfig | None = None) -> None:
        self._config = config or QueryConfig()

    @property
    def config(self) -> QueryConfig:
        return self._config

    def plan(
        self,
        filters: Iterable[FilterInput] | None = None,
        *,
        page_size: int | None = None,
        sort_order: SortOrder | str | None = None,
        cursor: str | None = None,
    ) -> QuerySpec:
        """Build a query; any argument left as ``None`` falls back to the config.

        Raises:
            InvalidArgument: If the resulting arguments are invalid.
        """
        return build_query(
            filters if filters is not None else self._config.tag_filters(),
            page_size if page_size is not None else self._config.page_size,
            sort_order if sort_order is not None else self._config.sort_order,
            cursor,
        )
