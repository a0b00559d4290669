r"""weavefeed -- tagged-transaction query-and-hydrate client for permaweb gateways.

Queries a gateway's GraphQL transaction index by tag, fetches each matching
transaction's payload with bounded concurrency, and returns render-ready
pages in index order with per-item failures attached instead of raised.

Architecture follows a **diamond DAG** dependency structure where imports
flow strictly downward:

```text
              pipeline          Orchestration and cancellation
             /        \
          core      gateway     Exceptions, logging, metrics | HTTP, index, hydration
             \        /
              models            Pure frozen dataclasses (zero I/O)
```

Note:
    Top-level imports (``from weavefeed import FeedPipeline``) use lazy
    loading and resolve on first access. For lightweight usage, import
    directly from subpackages::

        from weavefeed.models import TagFilter, SortOrder
        from weavefeed.gateway import build_query
"""

import importlib
from importlib.metadata import version as _get_version


__version__ = _get_version("weavefeed")

__all__ = [
    "Cancelled",
    "FeedPipeline",
    "GatewayClient",
    "HydratedPost",
    "Hydrator",
    "IndexClient",
    "InvalidArgument",
    "PipelineConfig",
    "QuerySpec",
    "ResultPage",
    "SortOrder",
    "TagFilter",
    "TransportError",
    "TxReference",
    "WeaveFeedError",
    "build_query",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "Cancelled": ("weavefeed.core", "Cancelled"),
    "InvalidArgument": ("weavefeed.core", "InvalidArgument"),
    "TransportError": ("weavefeed.core", "TransportError"),
    "WeaveFeedError": ("weavefeed.core", "WeaveFeedError"),
    "HydratedPost": ("weavefeed.models", "HydratedPost"),
    "QuerySpec": ("weavefeed.models", "QuerySpec"),
    "ResultPage": ("weavefeed.models", "ResultPage"),
    "SortOrder": ("weavefeed.models", "SortOrder"),
    "TagFilter": ("weavefeed.models", "TagFilter"),
    "TxReference": ("weavefeed.models", "TxReference"),
    "GatewayClient": ("weavefeed.gateway", "GatewayClient"),
    "Hydrator": ("weavefeed.gateway", "Hydrator"),
    "IndexClient": ("weavefeed.gateway", "IndexClient"),
    "build_query": ("weavefeed.gateway", "build_query"),
    "FeedPipeline": ("weavefeed.pipeline", "FeedPipeline"),
    "PipelineConfig": ("weavefeed.pipeline", "PipelineConfig"),
}


def __getattr__(name: str) -> object:
    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        module = importlib.import_module(module_path)
        value = getattr(module, attr_name)
        globals()[name] = value  # Cache for subsequent access
        return value
    raise AttributeError(f"module 'weavefeed' has no attribute {name!r}")


def __dir__() -> list[str]:
    return __all__
