"""First pass over the inputs: total size of everything to be packed."""

from __future__ import annotations

import logging
from typing import Iterable

from zipsplit.lib.entries import Entry

logger = logging.getLogger(__name__)

__all__ = ["survey_total_size"]


def survey_total_size(entries: Iterable[Entry]) -> int:
    """Sum the sizes of all non-empty entries.

    Zero-size entries are left out here and in all later placement math.
    Nothing is read or written.
    """
    total = 0
    count = 0
    for entry in entries:
        if entry.size > 0:
            total += entry.size
            count += 1
    logger.debug("Surveyed %d non-empty entries totalling %d bytes", count, total)
    return total
