"""Output sinks that archives are written through.

The splitter only talks to the four operations of ``OutputSink``. Whether an
entry still fits is decided by the sink itself so that a concrete format can
account for its own per-entry overhead.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Set, TextIO

from zipsplit.lib.entries import Entry
from zipsplit.lib.errors import EntryIOError, SplitterStateError

logger = logging.getLogger(__name__)

__all__ = [
    "ArchiveStats",
    "OutputSink",
    "ZipOutputSink",
    "InMemorySink",
]

_COPY_BUFFER = 64 * 1024


@dataclass(frozen=True)
class ArchiveStats:
    """What ended up in one archive once its sink was closed."""

    path: Path
    entries: int
    size_bytes: int


class OutputSink(ABC):
    """Append-only archive handle bounded by a hard size limit."""

    path: Path

    @abstractmethod
    def can_put_entry(self, entry: Entry, reserve: int = 0) -> bool:
        """Whether ``entry`` fits while leaving ``reserve`` bytes of headroom."""

    @property
    @abstractmethod
    def current_size(self) -> int:
        """Committed size in bytes."""

    @abstractmethod
    def put_entry(self, entry: Entry) -> None:
        """Append ``entry`` to the archive."""

    @abstractmethod
    def close(self) -> None:
        """Finish the archive. Calling it twice is a no-op."""

    def stats(self) -> ArchiveStats:
        return ArchiveStats(path=self.path, entries=self.entry_count, size_bytes=self.current_size)

    @property
    def entry_count(self) -> int:
        return 0


class _BoundedSink(OutputSink):
    """Shared size and duplicate bookkeeping for the concrete sinks."""

    def __init__(self, path: Path, hard_limit: int) -> None:
        self.path = Path(path)
        self.hard_limit = hard_limit
        self._current_size = 0
        self._names: List[str] = []
        self._name_set: Set[str] = set()
        self._closed = False

    @property
    def current_size(self) -> int:
        return self._current_size

    @property
    def entry_count(self) -> int:
        return len(self._names)

    @property
    def names(self) -> List[str]:
        return list(self._names)

    @property
    def closed(self) -> bool:
        return self._closed

    def contains_entry(self, entry: Entry) -> bool:
        return entry.relative_path in self._name_set

    def can_put_entry(self, entry: Entry, reserve: int = 0) -> bool:
        if entry.size < 0:
            raise ValueError(f"Entry size must be non-negative: {entry.relative_path}")
        return self._current_size + entry.size + reserve <= self.hard_limit

    def put_entry(self, entry: Entry) -> None:
        if self._closed:
            raise SplitterStateError(
                f"Cannot write {entry.relative_path} to closed archive",
                archive=str(self.path),
                state="closed",
            )
        # First writer of a name wins inside one archive
        if self.contains_entry(entry):
            logger.debug("Archive %s already contains %s", self.path.name, entry.relative_path)
            return
        self._write(entry)
        self._names.append(entry.relative_path)
        self._name_set.add(entry.relative_path)
        self._current_size += entry.size

    @abstractmethod
    def _write(self, entry: Entry) -> None:
        ...


class ZipOutputSink(_BoundedSink):
    """Writes entries into a zip archive on disk.

    Args:
        path: Archive to create; parent directories are created as needed
        hard_limit: Maximum committed size in bytes
        report_dir: When set, ``<archive-name>.txt`` listing every entry is
            written there
    """

    def __init__(self, path: Path, hard_limit: int, report_dir: Optional[Path] = None) -> None:
        super().__init__(path, hard_limit)
        self.report_path: Optional[Path] = None
        self._report: Optional[TextIO] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._zip = zipfile.ZipFile(self.path, "w", compression=zipfile.ZIP_DEFLATED)
            if report_dir is not None:
                report_dir = Path(report_dir)
                report_dir.mkdir(parents=True, exist_ok=True)
                self.report_path = report_dir / f"{self.path.name}.txt"
                self._report = self.report_path.open("w", encoding="utf-8")
        except OSError as exc:
            raise EntryIOError(
                f"Unable to create archive {self.path}",
                path=str(self.path),
                cause=exc,
            ) from exc
        logger.debug("Opened archive %s", self.path)

    def _write(self, entry: Entry) -> None:
        info = zipfile.ZipInfo(entry.relative_path)
        info.compress_type = zipfile.ZIP_DEFLATED
        try:
            with entry.open() as src, self._zip.open(info, "w") as dst:
                shutil.copyfileobj(src, dst, _COPY_BUFFER)
            if self._report is not None:
                self._report.write("%6d %s\n" % (entry.size, entry.relative_path))
        except OSError as exc:
            raise EntryIOError(
                f"Unable to write {entry.relative_path}",
                archive=str(self.path),
                path=entry.origin,
                cause=exc,
            ) from exc

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._zip.close()
            if self._report is not None:
                self._report.close()
        except OSError as exc:
            raise EntryIOError(
                f"Unable to finish archive {self.path}",
                path=str(self.path),
                cause=exc,
            ) from exc
        logger.debug(
            "Closed archive %s (%d entries, %d bytes)",
            self.path,
            self.entry_count,
            self.current_size,
        )


class InMemorySink(_BoundedSink):
    """Sink that keeps entry bytes in memory instead of writing a file.

    Used for dry runs and tests.
    """

    def __init__(self, path: Path, hard_limit: int) -> None:
        super().__init__(path, hard_limit)
        self.contents: Dict[str, bytes] = {}

    def _write(self, entry: Entry) -> None:
        try:
            data = entry.read_bytes()
        except OSError as exc:
            raise EntryIOError(
                f"Unable to read {entry.relative_path}",
                archive=str(self.path),
                path=entry.origin,
                cause=exc,
            ) from exc
        self.contents[entry.relative_path] = data

    def close(self) -> None:
        self._closed = True
