"""HTTP utilities for weavefeed.

Provides bounded body reading for gateway responses so an oversized index
envelope or payload cannot exhaust memory.

Note:
    This module sits in the ``utils`` layer and depends only on stdlib and
    ``aiohttp``. It raises plain ``ValueError``; the
    [GatewayClient][weavefeed.gateway.client.GatewayClient] translates it
    into [TransportError][weavefeed.core.exceptions.TransportError].
"""

from __future__ import annotations

import aiohttp


async def read_bounded(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Read an entire response body with size enforcement.

    Accumulates chunks until EOF or the size limit is exceeded. A single
    ``response.content.read(n)`` may return fewer bytes than requested under
    chunked transfer-encoding, so reads are repeated until EOF.

    Args:
        response: An aiohttp response whose body has not yet been consumed.
        max_size: Maximum allowed response body size in bytes.

    Returns:
        The complete response body.

    Raises:
        ValueError: If the response body exceeds *max_size*.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await response.content.read(max_size + 1 - total)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size:
            raise ValueError(f"Response body too large: >{max_size} bytes")
        chunks.append(chunk)
    return b"".join(chunks)

