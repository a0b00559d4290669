"""
Structured logging with key=value and JSON output support.

Wraps the standard library ``logging`` module so pipeline events can carry
structured fields. Two output modes are supported: human-readable key=value
pairs (default) and one JSON object per line for log aggregators.

``StructuredFormatter`` reads the ``structured_kv`` extra attached by
``Logger`` and appends it to the message. Installed on the root handler by
the CLI, it also formats the plain ``logging.getLogger()`` calls made in the
gateway layer, so all output shares the ``level name message k=v`` shape.

Examples:
    ```python
    from weavefeed.core.logger import Logger

    logger = Logger("pipeline")
    logger.info("page_fetched", refs=10, has_more=True)
    # Output: info pipeline page_fetched refs=10 has_more=True

    Logger("pipeline", json_output=True).info("page_fetched", refs=10)
    # Output: {"timestamp": "...", "level": "info", "service": "pipeline", ...}
    ```
"""

import datetime
import json
import logging
from typing import Any, ClassVar


def _truncate(value: Any, max_value_length: int | None) -> str:
    s = str(value)
    if max_value_length and len(s) > max_value_length:
        return s[:max_value_length] + f"...<truncated {len(s) - max_value_length} chars>"
    return s


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = 1000,
    prefix: str = " ",
) -> str:
    """Format a dictionary as space-separated key=value pairs.

    Values longer than ``max_value_length`` are truncated. Values that are
    empty or contain whitespace, ``=`` or quotes are escaped and quoted.

    Args:
        kwargs: Key-value pairs to format.
        max_value_length: Maximum characters per value. None disables truncation.
        prefix: String prepended to a non-empty result.

    Returns:
        e.g. ``' id=tx1 reason="HTTP 404"'``, or ``""`` if kwargs is empty.
    """
    if not kwargs:
        return ""

    parts = []
    for k, v in kwargs.items():
        s = _truncate(v, max_value_length)
        if not s or any(c in s for c in " =\"'"):
            escaped = s.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{k}="{escaped}"')
        else:
            parts.append(f"{k}={s}")
    return prefix + " ".join(parts)


class StructuredFormatter(logging.Formatter):
    """Formats log records as ``level name message key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        extra: dict[str, Any] = getattr(record, "structured_kv", {})
        if extra:
            base += format_kv_pairs(extra)
        if record.exc_info:
            base += "\n" + self.formatException(record.exc_info)
        return base


class Logger:
    """Structured logger that appends keyword arguments as fields.

    Mirrors the standard logging API (``debug`` .. ``exception``) with an
    added ``**kwargs`` parameter. Event names are snake_case verbs in the
    past tense (``page_fetched``, ``hydration_failed``).
    """

    _DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        """Initialize a structured logger.

        Args:
            name: Logger name; maps to ``logging.getLogger(name)``.
            json_output: Emit JSON objects instead of key=value pairs.
            max_value_length: Per-value truncation limit (default 1000).
        """
        if max_value_length is None:
            max_value_length = self._DEFAULT_MAX_VALUE_LENGTH
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = max_value_length

    @property
    def name(self) -> str:
        return self._logger.name

    def _emit(self, level: int, msg: str, kwargs: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if self._json_output:
            record = {
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                "level": logging.getLevelName(level).lower(),
                "service": self._logger.name,
                "message": msg,
                **kwargs,
            }
            self._logger.log(level, json.dumps(record, default=str), exc_info=exc_info)
            return
        extra: dict[str, Any] = {}
        if kwargs:
            extra["structured_kv"] = {
                k: _truncate(v, self._max_value_length) for k, v in kwargs.items()
            }
        self._logger.log(level, msg, extra=extra, exc_info=exc_info)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._emit(logging.ERROR, msg, kwargs)

    def exception(self, msg: str, **kwargs: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._emit(logging.ERROR, msg, kwargs, exc_info=True)
