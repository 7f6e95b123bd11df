"""Primary-versus-secondary placement decision for a single entry."""

from __future__ import annotations

from enum import Enum
from typing import Callable

from zipsplit.lib.config import SplitStrategy
from zipsplit.lib.entries import Entry
from zipsplit.lib.errors import OversizedEntryError, RequiredEntryOverflowError
from zipsplit.lib.sinks import OutputSink

__all__ = ["Target", "classify_entry"]


class Target(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


def classify_entry(
    entry: Entry,
    remaining_size: int,
    primary: OutputSink,
    hard_limit: int,
    strategy: SplitStrategy,
    required_in_primary: Callable[[str], bool],
) -> Target:
    """Decide which archive a non-empty entry goes to.

    An entry is placed in the primary archive if either:

    1. ``required_in_primary`` says it must be there, or
    2. everything not yet committed fits into what is left of the primary
       archive and the strategy is ``MAXIMIZE_PRIMARY``.

    Otherwise it goes to the current secondary archive. Early entries
    therefore spill to secondaries and the tail of the stream fills primary.

    Args:
        entry: Entry about to be committed
        remaining_size: Total size of entries not yet committed, this one included
        primary: Primary sink
        hard_limit: Maximum size of any archive
        strategy: Primary fill policy
        required_in_primary: Predicate over the entry's relative path

    Returns:
        Where the entry must be written

    Raises:
        OversizedEntryError: The entry cannot fit in any archive
        RequiredEntryOverflowError: The entry was routed to primary but no
            longer fits there
    """
    if entry.size > hard_limit:
        raise OversizedEntryError(
            f"Single entry larger than limit: {entry.relative_path}",
            relative_path=entry.relative_path,
            size=entry.size,
            hard_limit=hard_limit,
        )

    can_fit_all_remaining = remaining_size + primary.current_size <= hard_limit

    if required_in_primary(entry.relative_path) or (
        can_fit_all_remaining and strategy is SplitStrategy.MAXIMIZE_PRIMARY
    ):
        if not primary.can_put_entry(entry):
            raise RequiredEntryOverflowError(
                "Unable to fit all required files in primary zip.",
                relative_path=entry.relative_path,
                size=entry.size,
                primary_size=primary.current_size,
                archive=str(primary.path),
            )
        return Target.PRIMARY

    return Target.SECONDARY
