"""Pure frozen dataclasses with zero I/O for index queries, references, and posts.

The models layer is the foundation of the diamond DAG. It has **no dependencies**
on any other weavefeed package -- only the Python standard library. Every model uses
``@dataclass(frozen=True, slots=True)`` so records handed from one pipeline stage
to the next can never be mutated by their producer.

All validation happens in ``__post_init__`` so invalid instances never escape the
constructor. Models raise plain ``ValueError`` / ``TypeError``; the gateway layer
translates them into [InvalidArgument][weavefeed.core.exceptions.InvalidArgument]
or [TransportError][weavefeed.core.exceptions.TransportError] depending on where
the bad data came from.

Attributes:
    Tag: Name/value pair attached to a transaction.
    TagFilter: Tag name plus the accepted values, used to filter the index.
    QuerySpec: Immutable page request with deterministic GraphQL serialization.
    TxReference: Index metadata for one transaction (id, tags, size, timestamp).
    HydratedPost: A reference plus its decoded content or failure kind.
    IndexPage: References returned by the index with the next-page cursor.
    ResultPage: Hydrated posts in index order with the next-page cursor.
    SortOrder: ``NEWEST_FIRST`` / ``OLDEST_FIRST`` by block height.
    ErrorKind: Per-item hydration failure classification.
"""

from .constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, ErrorKind, SortOrder
from .post import HydratedPost, IndexPage, ResultPage
from .query import QuerySpec
from .tag import Tag, TagFilter
from .transaction import TxReference


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "ErrorKind",
    "HydratedPost",
    "IndexPage",
    "QuerySpec",
    "ResultPage",
    "SortOrder",
    "Tag",
    "TagFilter",
    "TxReference",
]
