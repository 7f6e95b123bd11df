"""Logging for split runs.

Records carry split context (the primary archive of the run, the archive and
entry being worked on). ``JSONFormatter`` lifts that context, and the fields
of a ``SplitError.to_dict()`` passed as ``extra={"error": ...}``, to top-level
keys so build servers can filter on them directly.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "setup_logging",
    "JSONFormatter",
    "SplitLogger",
    "get_split_logger",
]

# Record attributes promoted to top-level JSON keys
CONTEXT_FIELDS = ("primary", "archive", "entry", "unit")


class JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Example output:
        {"timestamp": "2025-01-15T10:30:00.123Z", "level": "ERROR",
         "logger": "zipsplit.lib.splitter", "message": "Split failed: ...",
         "primary": "out/classes.dex.jar", "archive": "out/classes.dex.jar",
         "entry": "com/example/Main.class", "error_type": "RequiredEntryOverflowError",
         "details": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                data[name] = value

        error = getattr(record, "error", None)
        if isinstance(error, dict):
            self._merge_error(data, error)

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)

    @staticmethod
    def _merge_error(data: Dict[str, Any], error: Dict[str, Any]) -> None:
        details = dict(error.get("details") or {})
        data["error_type"] = error.get("error_type")
        if error.get("archive"):
            data.setdefault("archive", error["archive"])
        entry = details.pop("entry", None)
        if entry is not None:
            data.setdefault("entry", entry)
        if details:
            data["details"] = details
        if error.get("suggestion"):
            data["suggestion"] = error["suggestion"]


class SplitLogger:
    """Logger that stamps bound split context onto every record.

    Example:
        logger = SplitLogger("zipsplit.lib.splitter")
        with logger.bound(primary="out/classes.dex.jar"):
            logger.info("Traversing (first pass)")
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)
        self._context: Dict[str, Any] = {}

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    @contextmanager
    def bound(self, **fields: Any) -> Iterator["SplitLogger"]:
        """Add context fields for the duration of the block."""
        previous = self._context
        self._context = {**previous, **fields}
        try:
            yield self
        finally:
            self._context = previous

    def _log(self, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
        extra = {**self._context, **kwargs.pop("extra", {})}
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)


def get_split_logger(name: str) -> SplitLogger:
    return SplitLogger(name)


def _resolve_level(verbose: bool, level: Optional[str]) -> int:
    if verbose:
        return logging.DEBUG
    resolved = logging.getLevelName(level.upper()) if level else logging.INFO
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
    level: Optional[str] = None,
) -> None:
    """Configure the root logger for a split run.

    Args:
        verbose: Debug level, regardless of ``level``
        json_format: Emit ``JSONFormatter`` records
        log_file: Also write records to this file
        level: Level name such as "WARNING"; unknown names mean INFO
    """
    resolved = _resolve_level(verbose, level)
    formatter: logging.Formatter = (
        JSONFormatter()
        if json_format
        else logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S")
    )

    # stdout is reserved for the produced archive list
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(resolved)
    for handler in handlers:
        handler.setLevel(resolved)
        handler.setFormatter(formatter)
        root.addHandler(handler)
