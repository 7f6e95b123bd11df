"""Structured exception hierarchy for the zip splitter.

Each fatal condition of a split run has its own exception type so callers
can tell configuration mistakes apart from I/O failures.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "SplitError",
    "ConfigurationError",
    "OversizedEntryError",
    "RequiredEntryOverflowError",
    "EntryIOError",
    "SplitterStateError",
]


class SplitError(Exception):
    """Base exception for all splitter errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        archive: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.archive = archive
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if archive:
            parts.insert(0, f"[{archive}]")

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "archive": self.archive,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(SplitError):
    """Error in splitter configuration.

    Raised when configuration is invalid or incomplete.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value

        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details=details, **kwargs)


class OversizedEntryError(SplitError):
    """A single entry is larger than the hard limit of any archive."""

    def __init__(
        self,
        message: str,
        *,
        relative_path: str,
        size: int,
        hard_limit: int,
        **kwargs: Any,
    ) -> None:
        self.relative_path = relative_path
        self.size = size
        self.hard_limit = hard_limit

        details = kwargs.pop("details", {})
        details.update({
            "entry": relative_path,
            "size": size,
            "hard_limit": hard_limit,
        })

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Raise the hard limit or shrink the entry."

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)


class RequiredEntryOverflowError(SplitError):
    """An entry forced into the primary archive does not fit there."""

    def __init__(
        self,
        message: str,
        *,
        relative_path: str,
        size: int,
        primary_size: int,
        **kwargs: Any,
    ) -> None:
        self.relative_path = relative_path
        self.size = size
        self.primary_size = primary_size

        details = kwargs.pop("details", {})
        details.update({
            "entry": relative_path,
            "size": size,
            "primary_size": primary_size,
        })

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = (
                "Reduce the set of classes required in the primary archive "
                "or raise the hard limit."
            )

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)


class EntryIOError(SplitError):
    """I/O failure while reading an entry or writing an archive."""

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.path = path
        self.cause = cause

        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details=details, **kwargs)


class SplitterStateError(SplitError):
    """A single-use object was used outside of its lifecycle."""

    def __init__(
        self,
        message: str,
        *,
        state: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.state = state

        details = kwargs.pop("details", {})
        if state:
            details["state"] = state

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = "Create a new ZipSplitter for every run."

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)
