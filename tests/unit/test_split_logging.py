"""Tests for zipsplit/lib/logging.py."""

import json
import logging
import sys

from zipsplit.lib.errors import RequiredEntryOverflowError
from zipsplit.lib.logging import JSONFormatter, SplitLogger, get_split_logger, setup_logging


def _record(msg, args=(), level=logging.INFO, exc_info=None, **attrs):
    record = logging.LogRecord(
        name="zipsplit.test",
        level=level,
        pathname="/test/file.py",
        lineno=42,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter class."""

    def test_basic_format(self):
        """Should format log record as JSON."""
        data = json.loads(JSONFormatter().format(_record("Finalized %s", ("a.jar",))))

        assert data["level"] == "INFO"
        assert data["logger"] == "zipsplit.test"
        assert data["message"] == "Finalized a.jar"
        assert data["timestamp"].endswith("Z")

    def test_format_with_exception(self):
        """Should include exception info."""
        try:
            raise ValueError("boom")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(_record("failed", level=logging.ERROR, exc_info=exc_info)))
        assert "ValueError: boom" in data["exception"]

    def test_context_fields_are_top_level(self):
        record = _record("Opened", primary="out/classes.dex.jar", archive="out/s/secondary-1.dex.jar")
        data = json.loads(JSONFormatter().format(record))
        assert data["primary"] == "out/classes.dex.jar"
        assert data["archive"] == "out/s/secondary-1.dex.jar"
        assert "entry" not in data

    def test_unrelated_attributes_are_dropped(self):
        data = json.loads(JSONFormatter().format(_record("hello", secret="x")))
        assert "secret" not in data
        assert "extra" not in data

    def test_split_error_fields_are_lifted(self):
        """A SplitError passed as extra error= becomes top-level keys."""
        error = RequiredEntryOverflowError(
            "Unable to fit all required files in primary zip.",
            relative_path="com/app/Main.class",
            size=300,
            primary_size=900,
            archive="out/classes.dex.jar",
        )
        record = _record("Split failed", level=logging.ERROR, error=error.to_dict())

        data = json.loads(JSONFormatter().format(record))

        assert data["error_type"] == "RequiredEntryOverflowError"
        assert data["archive"] == "out/classes.dex.jar"
        assert data["entry"] == "com/app/Main.class"
        assert data["details"] == {"size": 300, "primary_size": 900}
        assert "Reduce the set" in data["suggestion"]

    def test_record_context_wins_over_error(self):
        record = _record(
            "Split failed",
            archive="out/s/secondary-2.dex.jar",
            error={"error_type": "EntryIOError", "archive": "other.jar", "details": {}},
        )
        data = json.loads(JSONFormatter().format(record))
        assert data["archive"] == "out/s/secondary-2.dex.jar"
        assert "details" not in data


class TestSplitLogger:
    """Tests for SplitLogger context handling."""

    def test_bound_context_added_to_records(self, caplog):
        logger = get_split_logger("zipsplit.test.context")

        with caplog.at_level(logging.INFO, logger="zipsplit.test.context"):
            with logger.bound(primary="out/classes.dex.jar"):
                logger.info("Packed %d entries", 3, extra={"entry": "A.class"})

        record = caplog.records[-1]
        assert record.getMessage() == "Packed 3 entries"
        assert record.primary == "out/classes.dex.jar"
        assert record.entry == "A.class"

    def test_bound_is_restored(self):
        logger = SplitLogger("zipsplit.test.bound")
        with logger.bound(primary="a.jar"):
            with logger.bound(unit="classes"):
                assert logger.context == {"primary": "a.jar", "unit": "classes"}
            assert logger.context == {"primary": "a.jar"}
        assert logger.context == {}

    def test_bound_restored_after_error(self):
        logger = SplitLogger("zipsplit.test.error")
        try:
            with logger.bound(primary="a.jar"):
                raise RuntimeError("bad")
        except RuntimeError:
            pass
        assert logger.context == {}


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_verbose_sets_debug(self, restore_root_logging):
        setup_logging(verbose=True, level="ERROR")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr

    def test_level_and_json(self, restore_root_logging):
        setup_logging(json_format=True, level="warning")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_root_logging):
        setup_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_log_file(self, tmp_path, restore_root_logging):
        log_file = tmp_path / "split.log"
        setup_logging(log_file=str(log_file))
        logging.getLogger("zipsplit.test.file").info("to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "to file" in log_file.read_text()
