"""In-memory entry streams and sink factories for splitter tests."""

from pathlib import Path
from typing import Dict, Iterator, List, Sequence, Tuple

from zipsplit.lib.entries import Entry
from zipsplit.lib.sinks import InMemorySink


def make_entry(relative_path: str, size: int) -> Entry:
    """In-memory entry of ``size`` bytes."""
    return Entry.from_bytes(relative_path, b"x" * size, origin="test")


class ListStream:
    """Entry stream over fixed in-memory units, restartable like ClasspathStream."""

    def __init__(self, units: Sequence[Tuple[str, Sequence[Entry]]]) -> None:
        self.units = [(Path(name), list(entries)) for name, entries in units]
        self.traversals = 0

    def iter_units(self) -> Iterator[Tuple[Path, Iterator[Entry]]]:
        self.traversals += 1
        for unit, entries in self.units:
            yield unit, iter(entries)

    def __iter__(self) -> Iterator[Entry]:
        for _, entries in self.iter_units():
            yield from entries


class MemorySinkFactory:
    """Creates InMemorySinks and remembers them by path."""

    def __init__(self, hard_limit: int) -> None:
        self.hard_limit = hard_limit
        self.sinks: Dict[Path, InMemorySink] = {}
        self.order: List[Path] = []

    def __call__(self, path: Path) -> InMemorySink:
        sink = InMemorySink(path, self.hard_limit)
        self.sinks[Path(path)] = sink
        self.order.append(Path(path))
        return sink

    def names(self, path: Path) -> List[str]:
        return self.sinks[Path(path)].names

    def size(self, path: Path) -> int:
        return self.sinks[Path(path)].current_size
