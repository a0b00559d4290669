"""Low-level helpers shared by the gateway layer.

Attributes:
    http: Bounded reading of aiohttp response bodies.

Note:
    The utils layer has **zero** imports from ``weavefeed.core``,
    ``weavefeed.gateway`` or ``weavefeed.pipeline``.
"""
