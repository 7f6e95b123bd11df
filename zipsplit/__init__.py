"""Deterministic splitting of class files into primary and secondary archives.

This package takes an ordered set of classpath inputs and packs their entries
into one primary archive and as many secondary archives as the size limits
require, keeping required entries in primary.

Usage:
    python -m zipsplit split.yaml
    zip-split --input build/classes --primary out/classes.dex.jar \\
        --secondary-dir out/secondary --soft-limit 3MB --hard-limit 4MB
"""

from zipsplit.lib.config import CanaryStrategy, SplitConfig, SplitStrategy
from zipsplit.lib.errors import (
    ConfigurationError,
    EntryIOError,
    OversizedEntryError,
    RequiredEntryOverflowError,
    SplitError,
    SplitterStateError,
)
from zipsplit.lib.splitter import ZipSplitter

__version__ = "1.0.0"

__all__ = [
    "CanaryStrategy",
    "SplitConfig",
    "SplitStrategy",
    "ZipSplitter",
    "ConfigurationError",
    "EntryIOError",
    "OversizedEntryError",
    "RequiredEntryOverflowError",
    "SplitError",
    "SplitterStateError",
]
