"""Summary report for a finished split run.

Writes two files into the report directory:

- ``split_summary.csv``: one row per archive with entry count, size and SHA256
- ``split_summary.json``: run totals plus the same per-archive rows

Per-archive entry listings (``<archive>.txt``) are written by the zip sinks
themselves while the archives are filled.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from zipsplit.lib.sinks import ArchiveStats

logger = logging.getLogger(__name__)

__all__ = [
    "SplitSummary",
    "compute_file_sha256",
    "write_split_summary",
    "read_split_summary",
    "SUMMARY_CSV",
    "SUMMARY_JSON",
]

SUMMARY_CSV = "split_summary.csv"
SUMMARY_JSON = "split_summary.json"

SUMMARY_COLUMNS = ["archive", "kind", "path", "entries", "size_bytes", "sha256"]


@dataclass
class SplitSummary:
    """Totals for one split run."""

    timestamp: str
    archive_count: int
    secondary_count: int
    total_entries: int
    total_bytes: int
    archives: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def compute_file_sha256(path: Path) -> str:
    """Compute SHA256 hash of a file, reading it in 1MB chunks."""
    hasher = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def _archive_rows(archives: Sequence[ArchiveStats]) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for position, stats in enumerate(archives):
        sha256: Optional[str] = None
        if stats.path.exists():
            sha256 = compute_file_sha256(stats.path)
        else:
            logger.warning("Archive not found for checksum: %s", stats.path)
        rows.append({
            "archive": stats.path.name,
            "kind": "primary" if position == 0 else "secondary",
            "path": str(stats.path),
            "entries": stats.entries,
            "size_bytes": stats.size_bytes,
            "sha256": sha256,
        })
    return rows


def write_split_summary(report_dir: Path, archives: Sequence[ArchiveStats]) -> Path:
    """Write the CSV and JSON summaries for a run.

    Args:
        report_dir: Directory to write into (created if missing)
        archives: Archive stats, primary first

    Returns:
        Path to the CSV summary
    """
    report_dir = Path(report_dir)
    report_dir.mkdir(parents=True, exist_ok=True)

    rows = _archive_rows(archives)
    df = pd.DataFrame.from_records(rows, columns=SUMMARY_COLUMNS)
    csv_path = report_dir / SUMMARY_CSV
    df.to_csv(csv_path, index=False)

    summary = SplitSummary(
        timestamp=datetime.now(timezone.utc).isoformat(),
        archive_count=len(rows),
        secondary_count=max(len(rows) - 1, 0),
        total_entries=int(df["entries"].sum()) if rows else 0,
        total_bytes=int(df["size_bytes"].sum()) if rows else 0,
        archives=rows,
    )
    (report_dir / SUMMARY_JSON).write_text(summary.to_json(), encoding="utf-8")

    logger.info("Wrote split summary to %s (%d archives)", csv_path, len(rows))
    return csv_path


def read_split_summary(report_dir: Path) -> pd.DataFrame:
    """Load the CSV summary written by ``write_split_summary``."""
    return pd.read_csv(Path(report_dir) / SUMMARY_CSV)
