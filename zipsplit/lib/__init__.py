"""Splitter library modules.

This package contains the entry stream, the output sinks and the packing
algorithm (survey, classifier, secondary rotation and the driver).
"""

from zipsplit.lib.canary import create_canary
from zipsplit.lib.classifier import Target, classify_entry
from zipsplit.lib.config import CanaryStrategy, SplitConfig, SplitStrategy, parse_size
from zipsplit.lib.config_loader import build_split_config, load_split_config
from zipsplit.lib.entries import ClasspathStream, Entry
from zipsplit.lib.predicates import primary_predicate
from zipsplit.lib.report import read_split_summary, write_split_summary
from zipsplit.lib.rotator import SecondaryRotator
from zipsplit.lib.sinks import ArchiveStats, InMemorySink, OutputSink, ZipOutputSink
from zipsplit.lib.splitter import PackingState, SplitterState, ZipSplitter
from zipsplit.lib.survey import survey_total_size

__all__ = [
    "ArchiveStats",
    "CanaryStrategy",
    "ClasspathStream",
    "Entry",
    "InMemorySink",
    "OutputSink",
    "PackingState",
    "SecondaryRotator",
    "SplitConfig",
    "SplitStrategy",
    "SplitterState",
    "Target",
    "ZipOutputSink",
    "ZipSplitter",
    "build_split_config",
    "classify_entry",
    "create_canary",
    "load_split_config",
    "parse_size",
    "primary_predicate",
    "read_split_summary",
    "survey_total_size",
    "write_split_summary",
]
