"""weavefeed exception hierarchy.

Provides typed exceptions for every error category of the query-and-hydrate
pipeline, so callers can distinguish caller bugs from transient network
failures and let ``asyncio.CancelledError`` propagate untouched.

Exception hierarchy:

```text
WeaveFeedError (base -- never raised directly)
├── ConfigurationError   -- config validation, missing keys, bad YAML
├── InvalidArgument      -- bad query spec (caller bug, not retried)
├── TransportError       -- network/HTTP/envelope failure (retryable)
│   └── NotFoundError    -- HTTP 404 from the gateway
├── DecodeError          -- payload is not valid UTF-8 text
├── Cancelled            -- caller-initiated abort of a pipeline call
└── InvariantViolation   -- internal consistency check failed (bug)
```

See Also:
    [build_query][weavefeed.gateway.planner.build_query]: Raises
        [InvalidArgument][weavefeed.core.exceptions.InvalidArgument].
    [GatewayClient][weavefeed.gateway.client.GatewayClient]: Raises
        [TransportError][weavefeed.core.exceptions.TransportError] for every
        transport-level failure.
    [Hydrator][weavefeed.gateway.hydrator.Hydrator]: Catches transport and
        decode errors per item instead of raising them.
"""

from __future__ import annotations


class WeaveFeedError(Exception):
    """Base exception for all weavefeed errors.

    Never raised directly -- always use a specific subclass.
    """


# ---------------------------------------------------------------------------
# Configuration / arguments
# ---------------------------------------------------------------------------


class ConfigurationError(WeaveFeedError):
    """Invalid or missing configuration (YAML, CLI flags)."""


class InvalidArgument(WeaveFeedError, ValueError):
    """A query was built from invalid arguments.

    Subclasses ``ValueError`` so generic argument-validation handlers keep
    working. Callers should fix the input rather than retry.
    """


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class TransportError(WeaveFeedError):
    """Network, HTTP, or response-envelope failure while talking to the gateway.

    Callers may retry after a backoff; index requests are idempotent.

    Attributes:
        url: The request URL, when known.
        status: HTTP status code, or ``None`` if no response was received.
        timeout: True if the request timed out.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status: int | None = None,
        timeout: bool = False,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status = status
        self.timeout = timeout


class NotFoundError(TransportError):
    """The gateway answered 404 for the requested resource."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message, url=url, status=404)


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------


class DecodeError(WeaveFeedError):
    """A transaction payload could not be decoded as UTF-8 text.

    Not retryable: payloads are immutable once committed.
    """


# ---------------------------------------------------------------------------
# Control flow / internal
# ---------------------------------------------------------------------------


class Cancelled(WeaveFeedError):
    """The caller's cancellation signal fired before the call completed.

    No partial result accompanies this exception.
    """


class InvariantViolation(WeaveFeedError):
    """An internal consistency check failed. Indicates a bug, not bad input."""
