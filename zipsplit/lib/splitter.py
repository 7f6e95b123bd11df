"""Splits classpath entries into a primary archive and secondary archives.

Usage:
    from zipsplit.lib.config import SplitConfig
    from zipsplit.lib.splitter import ZipSplitter

    config = SplitConfig(
        inputs=("build/classes", "libs/guava.jar"),
        primary_output="out/classes.dex.jar",
        secondary_output_dir="out/secondary",
        soft_limit=3 * 1024 * 1024,
        hard_limit=4 * 1024 * 1024,
    )
    secondaries = ZipSplitter(config).execute()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from zipsplit.lib.classifier import Target, classify_entry
from zipsplit.lib.config import SplitConfig
from zipsplit.lib.entries import ClasspathStream, Entry
from zipsplit.lib.errors import SplitError, SplitterStateError
from zipsplit.lib.logging import get_split_logger
from zipsplit.lib.report import write_split_summary
from zipsplit.lib.rotator import SecondaryRotator
from zipsplit.lib.sinks import ArchiveStats, OutputSink, ZipOutputSink
from zipsplit.lib.survey import survey_total_size

logger = get_split_logger(__name__)

__all__ = ["SplitterState", "PackingState", "ZipSplitter"]


class SplitterState(Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass
class PackingState:
    """Mutable state of one packing pass. Never shared between runs."""

    remaining_size: int
    primary: OutputSink
    rotator: SecondaryRotator

    def commit(self, entry: Entry, target: OutputSink) -> None:
        if entry.size > self.remaining_size:
            raise SplitError(
                "Entry sizes changed between the survey and packing passes",
                archive=str(target.path),
                details={
                    "entry": entry.relative_path,
                    "size": entry.size,
                    "remaining_size": self.remaining_size,
                },
            )
        target.put_entry(entry)
        self.remaining_size -= entry.size


class ZipSplitter:
    """Single-use driver for one split run.

    Args:
        config: Split configuration
        stream: Entry stream; defaults to traversing ``config.inputs``
        sink_factory: Creates the sink for an archive path; defaults to
            zip files on disk
        write_summary: Write the summary report when ``config.report_dir`` is set
    """

    def __init__(
        self,
        config: SplitConfig,
        stream: Optional[ClasspathStream] = None,
        sink_factory: Optional[Callable[[Path], OutputSink]] = None,
        write_summary: bool = True,
    ) -> None:
        self.config = config
        self.stream = stream or ClasspathStream(config.inputs, config.ignore_paths)
        self.sink_factory = sink_factory or self._zip_sink
        self.write_summary = write_summary
        self.state = SplitterState.NOT_STARTED
        self.primary_stats: Optional[ArchiveStats] = None
        self.secondary_stats: List[ArchiveStats] = []
        self._packing: Optional[PackingState] = None

    def _zip_sink(self, path: Path) -> OutputSink:
        return ZipOutputSink(path, self.config.hard_limit, self.config.report_dir)

    @property
    def archives(self) -> List[ArchiveStats]:
        """Stats of every archive produced, primary first."""
        head = [self.primary_stats] if self.primary_stats else []
        return head + self.secondary_stats

    def execute(self) -> List[Path]:
        """Run the split.

        Not safe to execute more than once; a second call raises
        ``SplitterStateError``.

        Returns:
            Paths of the secondary archives in creation order
        """
        if self.state is not SplitterState.NOT_STARTED:
            raise SplitterStateError(
                "ZipSplitter.execute() may only be called once",
                state=self.state.value,
            )
        self.state = SplitterState.RUNNING
        try:
            with logger.bound(primary=str(self.config.primary_output)):
                return self._run()
        finally:
            self.state = SplitterState.FINISHED

    def _run(self) -> List[Path]:
        # Knowing the total up front tells us when it becomes safe to put
        # non-required entries into the primary archive.
        logger.debug("Traversing (first pass)")
        remaining = survey_total_size(self.stream)

        primary = self.sink_factory(self.config.primary_output)
        rotator = SecondaryRotator(self.config, self.sink_factory)
        self._packing = PackingState(remaining_size=remaining, primary=primary, rotator=rotator)

        try:
            for unit, entries in self.stream.iter_units():
                logger.debug("Traversing for: %s", unit, extra={"unit": str(unit)})
                for entry in entries:
                    logger.debug("Visiting %s", entry.relative_path, extra={"entry": entry.relative_path})
                    self._process_entry(entry)

                # Soft limit reached: the next secondary entry starts a new archive
                current = rotator.current
                if current is not None and current.current_size >= self.config.soft_limit:
                    rotator.finish_current()
        except SplitError as exc:
            logger.error("Split failed: %s", exc.message, extra={"error": exc.to_dict()})
            raise
        finally:
            try:
                primary.close()
            finally:
                rotator.close()
                self.primary_stats = primary.stats()
                self.secondary_stats = list(rotator.stats)

        secondaries = list(rotator.finalized)
        logger.info(
            "Split complete: primary %d bytes, %d secondary archive(s)",
            primary.current_size,
            len(secondaries),
        )

        if self.write_summary and self.config.report_dir is not None:
            write_split_summary(self.config.report_dir, self.archives)

        return secondaries

    def _process_entry(self, entry: Entry) -> None:
        packing = self._packing
        if packing is None or self.state is not SplitterState.RUNNING:
            raise SplitterStateError(
                f"Cannot place {entry.relative_path} outside of execute()",
                state=self.state.value,
            )

        # Empty markers go straight to primary without touching any counter
        if entry.size <= 0:
            packing.primary.put_entry(entry)
            return

        target = classify_entry(
            entry,
            packing.remaining_size,
            packing.primary,
            self.config.hard_limit,
            self.config.split_strategy,
            self.config.required_in_primary,
        )
        if target is Target.PRIMARY:
            out = packing.primary
        else:
            out = packing.rotator.get_output_to_write_to(entry)
        packing.commit(entry, out)
