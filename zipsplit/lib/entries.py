"""Entry stream over classpath inputs.

An input unit is a directory of class files, a ``.jar``/``.zip`` archive or a
single file. ``ClasspathStream`` turns an ordered set of input units into a
lazy stream of ``Entry`` objects that can be restarted: every call to
``iter_units()`` traverses the inputs again and yields the same entries in the
same order, which lets the splitter survey sizes in one pass and pack in a
second.
"""

from __future__ import annotations

import io
import logging
import os
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import (
    BinaryIO,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    Union,
)

from zipsplit.lib.errors import EntryIOError

logger = logging.getLogger(__name__)

__all__ = ["Entry", "ArchiveReader", "ClasspathStream", "ARCHIVE_SUFFIXES"]

ARCHIVE_SUFFIXES = (".jar", ".zip")


@dataclass(frozen=True)
class Entry:
    """A single file to be placed into an archive.

    Attributes:
        relative_path: Name of the entry inside the archive ("com/foo/Bar.class")
        size: Uncompressed size in bytes, known without reading the content
        opener: Zero-argument callable returning a readable binary stream
        origin: Where the entry came from, for log and error messages
    """

    relative_path: str
    size: int
    opener: Callable[[], BinaryIO] = field(repr=False, compare=False)
    origin: Optional[str] = field(default=None, compare=False)

    def open(self) -> BinaryIO:
        """Open the entry content for reading."""
        try:
            return self.opener()
        except OSError as exc:
            raise EntryIOError(
                f"Unable to read entry {self.relative_path}",
                path=self.origin or self.relative_path,
                cause=exc,
            ) from exc

    def read_bytes(self) -> bytes:
        with self.open() as stream:
            return stream.read()

    @classmethod
    def from_file(cls, path: Path, relative_path: str) -> "Entry":
        size = path.stat().st_size
        return cls(
            relative_path=relative_path,
            size=size,
            opener=lambda: open(path, "rb"),
            origin=str(path),
        )

    @classmethod
    def from_bytes(cls, relative_path: str, data: bytes, origin: Optional[str] = None) -> "Entry":
        return cls(
            relative_path=relative_path,
            size=len(data),
            opener=lambda: io.BytesIO(data),
            origin=origin,
        )

    @classmethod
    def from_zip_member(cls, reader: "ArchiveReader", info: zipfile.ZipInfo) -> "Entry":
        """Create an entry for one member of a zip archive.

        The size comes from the central directory; the member is only
        decompressed when the entry is opened, through the shared ``reader``.
        """
        return cls(
            relative_path=info.filename,
            size=info.file_size,
            opener=lambda: reader.open_member(info),
            origin=f"{reader.path}!{info.filename}",
        )


class ArchiveReader:
    """Read handle on one jar/zip shared by all of its entries.

    The central directory is parsed once when the handle is opened, not once
    per member. A member opened after ``close()`` reopens the archive.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._zip: Optional[zipfile.ZipFile] = None

    def _archive(self) -> zipfile.ZipFile:
        if self._zip is None:
            self._zip = zipfile.ZipFile(self.path)
        return self._zip

    def infolist(self) -> List[zipfile.ZipInfo]:
        return self._archive().infolist()

    def open_member(self, info: zipfile.ZipInfo) -> BinaryIO:
        try:
            return io.BytesIO(self._archive().read(info))
        except zipfile.BadZipFile as exc:
            raise OSError(f"Corrupt archive {self.path}: {exc}") from exc

    def close(self) -> None:
        if self._zip is not None:
            self._zip.close()
            self._zip = None


class ClasspathStream:
    """Lazy, restartable stream of entries across ordered input units.

    A relative path is yielded only once per traversal; the first input unit
    that provides it wins. Because the rule is applied identically on every
    traversal, repeated passes always see the same set of entries.

    Example:
        stream = ClasspathStream(["build/classes", "libs/guava.jar"])
        for unit, entries in stream.iter_units():
            for entry in entries:
                print(unit, entry.relative_path, entry.size)
    """

    def __init__(
        self,
        inputs: Iterable[Union[str, Path]],
        ignore_paths: Iterable[str] = (),
    ) -> None:
        # Ordered and de-duplicated, like an insertion-ordered set
        self.inputs: Tuple[Path, ...] = tuple(dict.fromkeys(Path(p) for p in inputs))
        self.ignore_paths = frozenset(p.strip("/") for p in ignore_paths)

    def iter_units(self) -> Iterator[Tuple[Path, Iterator[Entry]]]:
        """Yield ``(unit, entries)`` pairs in caller order.

        The per-unit iterators share duplicate tracking, so each must be
        consumed before advancing to the next unit.
        """
        seen: Set[str] = set()
        for unit in self.inputs:
            yield unit, self._unique(self.traverse(unit), seen)

    def __iter__(self) -> Iterator[Entry]:
        for _, entries in self.iter_units():
            yield from entries

    def _unique(self, entries: Iterator[Entry], seen: Set[str]) -> Iterator[Entry]:
        for entry in entries:
            if entry.relative_path in seen:
                logger.debug("Skipping duplicate entry %s from %s", entry.relative_path, entry.origin)
                continue
            seen.add(entry.relative_path)
            yield entry

    def traverse(self, unit: Path) -> Iterator[Entry]:
        """Yield every entry of a single input unit."""
        if not unit.exists():
            raise EntryIOError(f"Input does not exist: {unit}", path=str(unit))

        if unit.is_dir():
            yield from self._walk_directory(unit)
        elif unit.suffix.lower() in ARCHIVE_SUFFIXES:
            yield from self._iter_archive(unit)
        else:
            try:
                entry = Entry.from_file(unit, unit.name)
            except OSError as exc:
                raise EntryIOError(f"Unable to stat {unit}", path=str(unit), cause=exc) from exc
            yield entry

    def _walk_directory(self, root: Path) -> Iterator[Entry]:
        # Symlinks are followed; a directory that is its own ancestor is a cycle
        ancestors: Dict[str, FrozenSet[Tuple[int, int]]] = {
            os.fspath(root): frozenset([_directory_key(root)]),
        }
        for dirpath, dirnames, filenames in os.walk(root, followlinks=True):
            base = Path(dirpath)
            chain = ancestors.pop(dirpath)
            kept = []
            for d in sorted(dirnames):
                child = base / d
                if child.relative_to(root).as_posix() in self.ignore_paths:
                    continue
                try:
                    key = _directory_key(child)
                except OSError as exc:
                    logger.warning("Unable to stat %s, skipping: %s", child, exc)
                    continue
                if key in chain:
                    logger.warning("Skipping directory cycle at %s", child)
                    continue
                ancestors[os.path.join(dirpath, d)] = chain | {key}
                kept.append(d)
            dirnames[:] = kept

            for name in sorted(filenames):
                path = base / name
                relative = path.relative_to(root).as_posix()
                try:
                    yield Entry.from_file(path, relative)
                except OSError as exc:
                    logger.warning("Unable to stat %s, skipping: %s", path, exc)

    def _iter_archive(self, archive: Path) -> Iterator[Entry]:
        reader = ArchiveReader(archive)
        try:
            infos = reader.infolist()
        except (OSError, zipfile.BadZipFile) as exc:
            reader.close()
            raise EntryIOError(
                f"Unable to read archive {archive}",
                path=str(archive),
                cause=exc,
            ) from exc

        # Entries are packed while this unit is being iterated
        try:
            for info in infos:
                if info.is_dir():
                    continue
                yield Entry.from_zip_member(reader, info)
        finally:
            reader.close()


def _directory_key(path: Path) -> Tuple[int, int]:
    st = path.stat()
    return st.st_dev, st.st_ino
