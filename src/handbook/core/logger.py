"""
Structured logging on top of the standard library ``logging`` module.

Every log call names an event and attaches context as keyword arguments.
Records are rendered either as ``level logger event key=value ...`` lines
(default) or as one JSON object per line for log aggregators.

Examples:
    ```python
    from handbook.core.logger import Logger

    logger = Logger("pool")
    logger.warning("pool_high_usage", in_use=9, capacity=10)
    # Output: warning pool pool_high_usage in_use=9 capacity=10
    ```
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, ClassVar


_TRUNCATION_SUFFIX = "...<truncated {n} chars>"


def truncate_value(value: Any, max_length: int | None) -> Any:
    """Shorten the string form of *value* to *max_length* characters.

    Values that fit are returned untouched (not stringified), so JSON output
    keeps numbers and booleans typed.
    """
    if not max_length:
        return value
    text = str(value)
    if len(text) <= max_length:
        return value
    return text[:max_length] + _TRUNCATION_SUFFIX.format(n=len(text) - max_length)


def format_kv_pairs(fields: dict[str, Any], prefix: str = " ") -> str:
    """Render *fields* as space-separated ``key=value`` pairs.

    Empty values and values containing whitespace, ``=`` or quotes are
    double-quoted with backslash escaping.
    """
    if not fields:
        return ""
    rendered = []
    for key, value in fields.items():
        text = str(value)
        if not text or any(c in text for c in ' ="\'\n\t'):
            text = '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
        rendered.append(f"{key}={text}")
    return prefix + " ".join(rendered)


class StructuredFormatter(logging.Formatter):
    """``logging.Formatter`` that appends the ``structured_kv`` extra as key=value pairs.

    Records from plain ``logging.getLogger()`` calls carry no extra and are
    rendered with the same ``level name message`` prefix. With
    ``json_output=True`` every record becomes one JSON object per line, the
    process-wide equivalent of ``Logger(..., json_output=True)``.
    """

    def __init__(self, *, json_output: bool = False) -> None:
        super().__init__()
        self._json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        fields = getattr(record, "structured_kv", {})
        if self._json_output:
            payload = {
                "timestamp": datetime.datetime.fromtimestamp(record.created, datetime.UTC).isoformat(),
                "level": record.levelname.lower(),
                "logger": record.name,
                "message": record.getMessage(),
                **fields,
            }
            if record.exc_info:
                payload["exc_info"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        line = f"{record.levelname.lower()} {record.name} {record.getMessage()}"
        line += format_kv_pairs(fields)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class Logger:
    """Event logger that attaches keyword arguments as structured fields.

    Examples:
        ```python
        logger = Logger("executor")
        logger.info("slow_query", elapsed_ms=1520, param_count=2)

        json_logger = Logger("executor", json_output=True)
        json_logger.info("slow_query", elapsed_ms=1520)
        # {"timestamp": "...", "level": "info", "logger": "executor", ...}
        ```
    """

    DEFAULT_MAX_VALUE_LENGTH: ClassVar[int] = 1000

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = DEFAULT_MAX_VALUE_LENGTH,
    ) -> None:
        """Create a logger bound to ``logging.getLogger(name)``.

        Args:
            name: Component name (``pool``, ``executor``, ``repository``...).
            json_output: Emit JSON lines instead of key=value pairs.
            max_value_length: Truncate longer field values; ``None`` disables.
        """
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = max_value_length

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, event: str, fields: dict[str, Any], *, exc_info: bool = False) -> None:
        if not self._logger.isEnabledFor(level):
            return
        clean = {k: truncate_value(v, self._max_value_length) for k, v in fields.items()}
        if self._json_output:
            payload = {
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                "level": logging.getLevelName(level).lower(),
                "logger": self._logger.name,
                "message": event,
                **clean,
            }
            self._logger.log(level, json.dumps(payload, default=str), exc_info=exc_info)
        else:
            self._logger.log(level, event, extra={"structured_kv": clean}, exc_info=exc_info)

    def debug(self, event: str, **fields: Any) -> None:
        self._log(logging.DEBUG, event, fields)

    def info(self, event: str, **fields: Any) -> None:
        self._log(logging.INFO, event, fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._log(logging.WARNING, event, fields)

    def error(self, event: str, **fields: Any) -> None:
        self._log(logging.ERROR, event, fields)

    def exception(self, event: str, **fields: Any) -> None:
        """Log at ERROR level with the active exception's traceback."""
        self._log(logging.ERROR, event, fields, exc_info=True)


def setup_logging(level: str = "INFO", *, json_output: bool = False) -> None:
    """Install a [StructuredFormatter][handbook.core.logger.StructuredFormatter] on the root logger.

    Called once by the CLI host; library code never configures handlers.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(json_output=json_output))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper()))
