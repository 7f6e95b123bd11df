"""Lifecycle of the secondary archives."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

from zipsplit.lib.canary import create_canary
from zipsplit.lib.config import CanaryStrategy, SplitConfig
from zipsplit.lib.entries import Entry
from zipsplit.lib.errors import OversizedEntryError
from zipsplit.lib.sinks import ArchiveStats, OutputSink

logger = logging.getLogger(__name__)

__all__ = ["SecondaryRotator"]


class SecondaryRotator:
    """Hands out the secondary sink to write to and rolls over to new ones.

    Secondary archives are numbered from 1 using the configured pattern. A
    sink is finalized when the next entry no longer fits, or when the
    splitter asks for it at an input unit boundary. With canaries enabled,
    room for the canary class is kept free in every open sink and the canary
    is written just before the sink is closed.
    """

    def __init__(self, config: SplitConfig, sink_factory: Callable[[Path], OutputSink]) -> None:
        self.config = config
        self._sink_factory = sink_factory
        self.finalized: List[Path] = []
        self.stats: List[ArchiveStats] = []
        self.current: Optional[OutputSink] = None
        self.next_index = 1
        self._current_index = 0

    def _canary(self) -> Optional[Entry]:
        if self.config.canary_strategy is not CanaryStrategy.INCLUDE:
            return None
        return create_canary(self._current_index, self.config.canary_prefix)

    def _reserve(self) -> int:
        canary = self._canary()
        return canary.size if canary is not None else 0

    def _open_next(self) -> OutputSink:
        path = self.config.secondary_path(self.next_index)
        sink = self._sink_factory(path)
        self._current_index = self.next_index
        self.next_index += 1
        logger.info("Opened secondary archive %s", path, extra={"archive": str(path)})
        return sink

    def get_output_to_write_to(self, entry: Entry) -> OutputSink:
        """Return the secondary sink ``entry`` should be written to."""
        if self.current is not None and not self.current.can_put_entry(entry, self._reserve()):
            self.finish_current()

        if self.current is None:
            self.current = self._open_next()
            if not self.current.can_put_entry(entry, self._reserve()):
                raise OversizedEntryError(
                    f"Entry does not fit an empty secondary archive: {entry.relative_path}",
                    relative_path=entry.relative_path,
                    size=entry.size,
                    hard_limit=self.config.hard_limit,
                    archive=str(self.current.path),
                )

        return self.current

    def finish_current(self) -> None:
        """Finalize the open secondary sink, if there is one.

        The next entry routed to a secondary archive opens a fresh sink.
        """
        sink = self.current
        if sink is None:
            return
        self.current = None

        try:
            canary = self._canary()
            if canary is not None:
                sink.put_entry(canary)
        finally:
            sink.close()

        self.finalized.append(sink.path)
        self.stats.append(sink.stats())
        logger.info(
            "Finalized secondary archive %s (%d bytes)",
            sink.path,
            sink.current_size,
            extra={"archive": str(sink.path)},
        )

    def close(self) -> None:
        self.finish_current()
