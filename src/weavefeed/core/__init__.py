"""Core layer: exceptions, structured logging, YAML loading, and metrics.

Sits in the middle of the diamond DAG -- depends on nothing but third-party
libraries and is depended upon by ``weavefeed.gateway`` and
``weavefeed.pipeline``.

Attributes:
    Logger: Structured logger supporting key=value and JSON output modes.
        See [Logger][weavefeed.core.logger.Logger].
    load_yaml: Safe YAML loading with ``yaml.safe_load()``.
        See [load_yaml()][weavefeed.core.yaml.load_yaml].
    WeaveFeedError: Root of the exception hierarchy.
        See [weavefeed.core.exceptions][].
"""

from .exceptions import (
    Cancelled,
    ConfigurationError,
    DecodeError,
    InvalidArgument,
    InvariantViolation,
    NotFoundError,
    TransportError,
    WeaveFeedError,
)
from .logger import Logger, StructuredFormatter, format_kv_pairs
from .metrics import HYDRATIONS, INDEX_LATENCY_SECONDS, INDEX_REQUESTS
from .yaml import load_yaml


__all__ = [
    "HYDRATIONS",
    "INDEX_LATENCY_SECONDS",
    "INDEX_REQUESTS",
    "Cancelled",
    "ConfigurationError",
    "DecodeError",
    "InvalidArgument",
    "InvariantViolation",
    "Logger",
    "NotFoundError",
    "StructuredFormatter",
    "TransportError",
    "WeaveFeedError",
    "format_kv_pairs",
    "load_yaml",
]
