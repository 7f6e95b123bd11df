"""Builders for the required-in-primary predicate."""

from __future__ import annotations

import fnmatch
import logging
import re
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

__all__ = ["primary_predicate", "read_class_list", "PrimaryPredicate"]


def read_class_list(path: Union[str, Path]) -> List[str]:
    """Read relative entry paths, one per line.

    Blank lines and ``#`` comments are ignored.
    """
    names: List[str] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            name = line.split("#", 1)[0].strip()
            if name:
                names.append(name)
    return names


class PrimaryPredicate:
    """Matches relative paths against globs and an explicit path list.

    Example:
        required = PrimaryPredicate(patterns=["com/example/app/*"], paths=["Main.class"])
        required("com/example/app/App.class")  # True
    """

    def __init__(
        self,
        patterns: Iterable[str] = (),
        paths: Iterable[str] = (),
    ) -> None:
        self.patterns = tuple(patterns)
        self.paths: FrozenSet[str] = frozenset(p.lstrip("/") for p in paths)
        self._regex: Optional[re.Pattern[str]] = None
        if self.patterns:
            self._regex = re.compile(
                "|".join(f"(?:{fnmatch.translate(p)})" for p in self.patterns)
            )

    def __call__(self, relative_path: str) -> bool:
        if relative_path in self.paths:
            return True
        return bool(self._regex and self._regex.match(relative_path))

    def __repr__(self) -> str:
        return f"PrimaryPredicate(patterns={list(self.patterns)!r}, paths={len(self.paths)})"


def primary_predicate(
    patterns: Iterable[str] = (),
    paths: Iterable[str] = (),
    class_list: Optional[Union[str, Path]] = None,
) -> Callable[[str], bool]:
    """Build the predicate deciding which entries must stay in primary.

    Args:
        patterns: fnmatch globs over relative entry paths ("com/app/*")
        paths: Exact relative entry paths
        class_list: Optional file with more exact paths, one per line

    Returns:
        Predicate over relative entry paths
    """
    all_paths = list(paths)
    if class_list is not None:
        listed = read_class_list(class_list)
        logger.debug("Loaded %d primary classes from %s", len(listed), class_list)
        all_paths.extend(listed)
    return PrimaryPredicate(patterns=patterns, paths=all_paths)
