"""Gateway layer: HTTP transport, query planning, index access, and hydration.

Depends on [weavefeed.models][] and [weavefeed.core][]; depended upon by
[weavefeed.pipeline][].

Attributes:
    GatewayClient: Session-owning aiohttp client; converts every transport
        failure into [TransportError][weavefeed.core.exceptions.TransportError].
    build_query / QueryPlanner: Validated, deterministic query construction.
    IndexClient: GraphQL index queries, envelope decoding, pagination.
    Hydrator: Bounded-concurrency payload fetching with per-item errors.
    assemble: Order-checked merge of references and hydrated posts.
"""

from .assembler import assemble
from .client import GatewayClient
from .configs import (
    GatewayConfig,
    HydratorConfig,
    QueryConfig,
    TagFilterConfig,
    TimeoutsConfig,
)
from .hydrator import ContentCache, Hydrator, decode_payload
from .index import IndexClient, parse_envelope
from .planner import QueryPlanner, build_query


__all__ = [
    "ContentCache",
    "GatewayClient",
    "GatewayConfig",
    "Hydrator",
    "HydratorConfig",
    "IndexClient",
    "QueryConfig",
    "QueryPlanner",
    "TagFilterConfig",
    "TimeoutsConfig",
    "assemble",
    "build_query",
    "decode_payload",
    "parse_envelope",
]
