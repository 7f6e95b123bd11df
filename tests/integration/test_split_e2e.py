"""End-to-end split runs against real directories, jars and zip output.

Each test builds a small classpath on disk, runs a full split from a YAML
config and then opens the produced archives to check what ended up where.
"""

import zipfile
from pathlib import Path

import pytest

from zipsplit.lib.config_loader import load_split_config
from zipsplit.lib.errors import RequiredEntryOverflowError
from zipsplit.lib.report import read_split_summary
from zipsplit.lib.splitter import ZipSplitter

HARD_LIMIT = 4096


def _make_jar(path: Path, members):
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, size in members.items():
            zf.writestr(name, b"j" * size)
    return path


def _members(path: Path):
    with zipfile.ZipFile(path) as zf:
        return {info.filename: info.file_size for info in zf.infolist()}


@pytest.fixture
def classpath(tmp_path, class_tree):
    """An app class directory followed by a library jar."""
    app = class_tree(
        {
            "com/example/app/Main.class": 600,
            "com/example/app/ui/Screen.class": 900,
            "com/example/app/ui/Dialog.class": 700,
            "com/example/app/data/Repo.class": 1100,
            "META-INF/MANIFEST.MF": 0,
        },
        root_name="app",
    )
    lib = _make_jar(
        tmp_path / "libs" / "lib.jar",
        {
            "org/lib/A.class": 1500,
            "org/lib/B.class": 1500,
            "org/lib/C.class": 1200,
            "org/lib/D.class": 300,
            # Shadowed by the app directory
            "com/example/app/Main.class": 10,
        },
    )
    return app, lib


def _write_config(tmp_path: Path, extra: str = "") -> Path:
    path = tmp_path / "split.yaml"
    path.write_text(
        "inputs:\n"
        "  - app\n"
        "  - libs/lib.jar\n"
        "primary_output: out/classes.dex.jar\n"
        "secondary_output_dir: out/secondary\n"
        "secondary_pattern: 'secondary-{index}.dex.jar'\n"
        "soft_limit: 3072\n"
        f"hard_limit: {HARD_LIMIT}\n"
        "report_dir: out/reports\n" + extra,
        encoding="utf-8",
    )
    return path


class TestSplitEndToEnd:
    """Full runs through the YAML loader and the zip sinks."""

    def test_every_entry_placed_once(self, tmp_path, classpath):
        config = load_split_config(_write_config(tmp_path, "primary_patterns: ['com/example/app/Main.class']\n"))

        secondaries = ZipSplitter(config).execute()

        primary = _members(tmp_path / "out" / "classes.dex.jar")
        placed = dict(primary)
        for path in secondaries:
            members = _members(path)
            assert not set(members) & set(placed)
            placed.update(members)

        assert placed == {
            "com/example/app/Main.class": 600,
            "com/example/app/ui/Screen.class": 900,
            "com/example/app/ui/Dialog.class": 700,
            "com/example/app/data/Repo.class": 1100,
            "META-INF/MANIFEST.MF": 0,
            "org/lib/A.class": 1500,
            "org/lib/B.class": 1500,
            "org/lib/C.class": 1200,
            "org/lib/D.class": 300,
        }
        assert "com/example/app/Main.class" in primary
        assert "META-INF/MANIFEST.MF" in primary

    def test_archive_limits(self, tmp_path, classpath):
        config = load_split_config(_write_config(tmp_path))

        secondaries = ZipSplitter(config).execute()

        assert secondaries
        assert [p.name for p in secondaries] == [
            f"secondary-{i}.dex.jar" for i in range(1, len(secondaries) + 1)
        ]
        for path in [tmp_path / "out" / "classes.dex.jar"] + secondaries:
            assert sum(_members(path).values()) <= HARD_LIMIT

    def test_reports(self, tmp_path, classpath):
        config = load_split_config(_write_config(tmp_path))

        secondaries = ZipSplitter(config).execute()

        reports = tmp_path / "out" / "reports"
        for path in secondaries:
            listing = (reports / f"{path.name}.txt").read_text().splitlines()
            assert len(listing) == len(_members(path))

        df = read_split_summary(reports)
        assert list(df["kind"]) == ["primary"] + ["secondary"] * len(secondaries)
        assert df["size_bytes"].sum() == 7800
        assert df["sha256"].notna().all()

    def test_canaries_in_every_secondary(self, tmp_path, classpath):
        config = load_split_config(_write_config(tmp_path, "canary_strategy: include\n"))

        secondaries = ZipSplitter(config).execute()

        for index, path in enumerate(secondaries, start=1):
            members = _members(path)
            assert f"secondary/dex{index:02d}/Canary.class" in members
            assert sum(members.values()) <= HARD_LIMIT
        primary = _members(tmp_path / "out" / "classes.dex.jar")
        assert not any(name.endswith("Canary.class") for name in primary)

    def test_minimize_primary(self, tmp_path, classpath):
        (tmp_path / "primary.txt").write_text("com/example/app/Main.class\n")
        config = load_split_config(
            _write_config(tmp_path, "split_strategy: minimize\nprimary_classes_file: primary.txt\n")
        )

        ZipSplitter(config).execute()

        primary = _members(tmp_path / "out" / "classes.dex.jar")
        assert primary == {"com/example/app/Main.class": 600, "META-INF/MANIFEST.MF": 0}

    def test_required_overflow_fails(self, tmp_path, classpath):
        config = load_split_config(_write_config(tmp_path, "primary_patterns: ['*']\n"))

        with pytest.raises(RequiredEntryOverflowError):
            ZipSplitter(config).execute()

    def test_ignore_paths(self, tmp_path, classpath):
        config = load_split_config(_write_config(tmp_path, "ignore_paths: ['com/example/app/ui']\n"))

        secondaries = ZipSplitter(config).execute()

        names = set(_members(tmp_path / "out" / "classes.dex.jar"))
        for path in secondaries:
            names |= set(_members(path))
        assert not any(name.startswith("com/example/app/ui/") for name in names)
