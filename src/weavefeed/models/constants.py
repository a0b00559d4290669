"""Shared constants for the models layer.

Defines enumerations and limits used across multiple model modules and by
the gateway layer. Placing them here avoids circular dependencies between
the models and gateway layers.

See Also:
    [weavefeed.models.query][]: Uses [SortOrder][weavefeed.models.constants.SortOrder]
        and [MAX_PAGE_SIZE][weavefeed.models.constants.MAX_PAGE_SIZE] when
        building index queries.
    [weavefeed.models.post][]: Uses [ErrorKind][weavefeed.models.constants.ErrorKind]
        to classify per-item hydration failures.
"""

from __future__ import annotations

from enum import StrEnum


# Largest ``first`` argument the gateway GraphQL index accepts
MAX_PAGE_SIZE: int = 100

DEFAULT_PAGE_SIZE: int = 10


class SortOrder(StrEnum):
    """Ordering of index results by block height.

    Attributes:
        NEWEST_FIRST: Most recently mined transactions first.
        OLDEST_FIRST: Oldest transactions first.

    Examples:
        ```python
        SortOrder.NEWEST_FIRST.wire   # 'HEIGHT_DESC'
        SortOrder("oldest_first")     # SortOrder.OLDEST_FIRST
        ```
    """

    NEWEST_FIRST = "newest_first"
    OLDEST_FIRST = "oldest_first"

    @property
    def wire(self) -> str:
        """GraphQL enum literal sent to the index."""
        return "HEIGHT_DESC" if self is SortOrder.NEWEST_FIRST else "HEIGHT_ASC"


class ErrorKind(StrEnum):
    """Classification of a failed hydration attempt.

    Attributes:
        TRANSPORT: Network failure or non-success HTTP status.
        TIMEOUT: The per-item hydration timeout elapsed.
        NOT_FOUND: The content endpoint answered 404.
        DECODE: The payload bytes are not valid UTF-8 text.

    Note:
        ``DECODE`` is the only kind that is never worth retrying; the other
        three are transient from the caller's point of view.
    """

    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    NOT_FOUND = "not_found"
    DECODE = "decode"

    @property
    def retryable(self) -> bool:
        return self is not ErrorKind.DECODE
