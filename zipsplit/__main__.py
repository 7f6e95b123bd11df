"""CLI entry point for splitting classpath entries into archives.

Usage:
    python -m zipsplit split.yaml
    python -m zipsplit split.yaml --dry-run
    python -m zipsplit --input build/classes --input libs/guava.jar \\
        --primary out/classes.dex.jar --secondary-dir out/secondary \\
        --soft-limit 3MB --hard-limit 4MB --primary-pattern 'com/example/app/*'

The produced secondary archive paths are printed to stdout, one per line.
Logs go to stderr.

Exit codes:
    0  success
    1  the split failed (oversized entry, primary overflow, I/O error)
    2  invalid configuration
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from zipsplit.lib.config import SplitConfig
from zipsplit.lib.config_loader import (
    build_split_config,
    load_settings,
    validate_settings,
)
from zipsplit.lib.errors import ConfigurationError, SplitError
from zipsplit.lib.logging import setup_logging
from zipsplit.lib.sinks import InMemorySink
from zipsplit.lib.splitter import ZipSplitter
from zipsplit.lib.validate import SplitterEnvSettings, SplitterSettingsModel

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SPLIT_ERROR = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zip-split",
        description="Split class files into a primary archive and secondary archives.",
    )
    parser.add_argument("config", nargs="?", help="YAML config file")

    group = parser.add_argument_group("split settings (override the config file)")
    group.add_argument("--input", dest="inputs", action="append", metavar="PATH",
                       help="Directory, jar or file to pack (repeatable)")
    group.add_argument("--primary", dest="primary_output", help="Primary archive path")
    group.add_argument("--secondary-dir", dest="secondary_output_dir",
                       help="Directory for secondary archives")
    group.add_argument("--pattern", dest="secondary_pattern",
                       help="Secondary archive name, e.g. 'secondary-{index}.dex.jar'")
    group.add_argument("--soft-limit", help="Soft size limit, e.g. 3MB")
    group.add_argument("--hard-limit", help="Hard size limit, e.g. 4MB")
    group.add_argument("--primary-pattern", dest="primary_patterns", action="append",
                       metavar="GLOB", help="Entries matching GLOB must be in primary (repeatable)")
    group.add_argument("--primary-classes", dest="primary_classes_file", metavar="FILE",
                       help="File listing entries that must be in primary")
    group.add_argument("--strategy", dest="split_strategy", choices=["maximize", "minimize"],
                       help="Primary fill strategy")
    group.add_argument("--canaries", dest="canary_strategy", action="store_const",
                       const="include", help="Add a canary class to every secondary archive")
    group.add_argument("--report-dir", help="Write per-archive reports and a summary here")

    parser.add_argument("--dry-run", action="store_true",
                        help="Plan the split in memory without writing archives")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json-logs", action="store_true", help="JSON log output")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    keys = [
        "inputs",
        "primary_output",
        "secondary_output_dir",
        "secondary_pattern",
        "soft_limit",
        "hard_limit",
        "primary_patterns",
        "primary_classes_file",
        "split_strategy",
        "canary_strategy",
        "report_dir",
    ]
    return {k: getattr(args, k) for k in keys if getattr(args, k) is not None}


def _env_defaults(env: SplitterEnvSettings) -> Dict[str, Any]:
    """Limits from ZIPSPLIT_* variables; the config file and flags win."""
    return {
        key: value
        for key, value in (("soft_limit", env.soft_limit), ("hard_limit", env.hard_limit))
        if value is not None
    }


def _apply_file_logging(settings: SplitterSettingsModel, env: SplitterEnvSettings) -> None:
    """Reconfigure logging from the file's own ``logging:`` section.

    Keys the section leaves out keep their ZIPSPLIT_* values.
    """
    if "logging" not in settings.model_fields_set:
        return
    section = settings.logging
    given = section.model_fields_set
    log_format = section.format if "format" in given else env.log_format
    setup_logging(
        json_format=log_format == "json",
        log_file=section.file if "file" in given else env.log_file,
        level=section.level if "level" in given else env.log_level,
    )


def _load_config(args: argparse.Namespace, env: SplitterEnvSettings) -> SplitConfig:
    overrides = _overrides(args)
    defaults = _env_defaults(env)
    settings: SplitterSettingsModel
    if args.config:
        settings, base_dir = load_settings(args.config, overrides, defaults)
        if not (args.verbose or args.json_logs or args.log_file):
            _apply_file_logging(settings, env)
    else:
        settings = validate_settings({**defaults, **overrides})
        base_dir = Path.cwd()
    return build_split_config(settings, base_dir)


def _print_plan(splitter: ZipSplitter) -> None:
    print("Dry run, no archives written:", file=sys.stderr)
    for stats in splitter.archives:
        print(
            f"  {stats.path}  entries={stats.entries}  bytes={stats.size_bytes}",
            file=sys.stderr,
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    env = SplitterEnvSettings()

    setup_logging(
        verbose=args.verbose,
        json_format=args.json_logs or env.log_format == "json",
        log_file=args.log_file or env.log_file,
        level=env.log_level,
    )

    try:
        config = _load_config(args, env)
    except ConfigurationError as exc:
        logger.error("%s", exc, extra={"error": exc.to_dict()})
        return EXIT_CONFIG_ERROR

    if args.dry_run:
        splitter = ZipSplitter(
            config,
            sink_factory=lambda path: InMemorySink(path, config.hard_limit),
            write_summary=False,
        )
    else:
        splitter = ZipSplitter(config)

    try:
        secondaries = splitter.execute()
    except SplitError as exc:
        logger.error("%s", exc, extra={"error": exc.to_dict()})
        return EXIT_SPLIT_ERROR

    if args.dry_run:
        _print_plan(splitter)
    for path in secondaries:
        print(path)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
