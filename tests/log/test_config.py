"""
Logging configuration tests.

Tests for spmkit._logging module.
"""

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_logger(monkeypatch):
    """Keep handler and level changes local to each test."""
    from spmkit._logging import logger

    monkeypatch.delenv("SPMKIT_LOG_FORMAT", raising=False)
    handlers = logger.handlers[:]
    level = logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging() function."""

    def test_setup_logging_exported(self, spmkit):
        """setup_logging is accessible from the package root."""
        from spmkit._logging import setup_logging

        assert spmkit.setup_logging is setup_logging

    def test_setup_logging_default_level(self):
        """setup_logging() defaults to INFO level."""
        from spmkit._logging import logger, setup_logging

        setup_logging()

        assert logger.level == logging.INFO

    def test_setup_logging_accepts_string_level(self):
        from spmkit._logging import logger, setup_logging

        setup_logging("DEBUG")

        assert logger.level == logging.DEBUG

    def test_setup_logging_accepts_int_level(self):
        from spmkit._logging import logger, setup_logging

        setup_logging(logging.WARNING)

        assert logger.level == logging.WARNING

    def test_setup_logging_replaces_handlers(self):
        """setup_logging() leaves exactly one handler."""
        from spmkit._logging import logger, setup_logging

        logger.addHandler(logging.StreamHandler())
        logger.addHandler(logging.StreamHandler())

        setup_logging("INFO")

        assert len(logger.handlers) == 1

    def test_setup_logging_format(self):
        from spmkit._logging import HumanFormatter, JsonFormatter, logger, setup_logging

        setup_logging("INFO", format="json")
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

        setup_logging("INFO", format="human")
        assert isinstance(logger.handlers[0].formatter, HumanFormatter)

    def test_setup_logging_leaves_environment_alone(self):
        """Configuring spmkit logging does not change process-wide state."""
        import os

        from spmkit._logging import setup_logging

        setup_logging("INFO", format="json")

        assert "SPMKIT_LOG_FORMAT" not in os.environ


class TestLevels:
    """parse_level() and SPMKIT_LOG_FORMAT."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("trace", logging.DEBUG),
            ("debug", logging.DEBUG),
            ("INFO", logging.INFO),
            ("Warn", logging.WARNING),
            ("error", logging.ERROR),
            (logging.ERROR, logging.ERROR),
        ],
    )
    def test_parse_level(self, value, expected):
        from spmkit._logging import parse_level

        assert parse_level(value) == expected

    def test_off_silences_everything(self):
        from spmkit._logging import parse_level

        assert parse_level("off") > logging.CRITICAL

    def test_unknown_level_uses_default(self):
        from spmkit._logging import parse_level

        assert parse_level("bogus") == logging.WARNING
        assert parse_level("bogus", default=logging.INFO) == logging.INFO

    def test_format_from_env(self, monkeypatch):
        from spmkit._logging import JsonFormatter, logger, setup_logging

        monkeypatch.setenv("SPMKIT_LOG_FORMAT", "JSON")
        setup_logging("INFO")

        assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    def test_explicit_format_beats_env(self, monkeypatch):
        from spmkit._logging import HumanFormatter, logger, setup_logging

        monkeypatch.setenv("SPMKIT_LOG_FORMAT", "json")
        setup_logging("INFO", format="human")

        assert isinstance(logger.handlers[0].formatter, HumanFormatter)


class TestLoggerHierarchy:
    def test_logger_name_is_spmkit(self):
        from spmkit._logging import logger

        assert logger.name == "spmkit"

    def test_child_inherits_level(self):
        from spmkit._logging import setup_logging

        setup_logging("DEBUG")

        assert logging.getLogger("spmkit.child").getEffectiveLevel() == logging.DEBUG


class TestSetLogLevel:
    """Tests for spmkit.set_log_level()."""

    def test_accepts_all_levels(self, spmkit):
        for level in ["trace", "debug", "info", "warn", "error", "off"]:
            spmkit.set_log_level(level)

    def test_case_insensitive(self, spmkit):
        from spmkit._logging import logger

        spmkit.set_log_level("Debug")

        assert logger.level == logging.DEBUG

    def test_unknown_defaults_to_warn(self, spmkit):
        from spmkit._logging import logger

        spmkit.set_log_level("unknown")

        assert logger.level == logging.WARNING


class TestOperationalLogging:
    """Records emitted by processor operations."""

    def test_load_failure_logged(self, caplog, stub_engine, tmp_path):
        from spmkit import Processor
        from spmkit.exceptions import LoadError

        missing = tmp_path / "missing.model"
        with caplog.at_level(logging.ERROR, logger="spmkit"):
            with pytest.raises(LoadError):
                Processor(missing, lib=stub_engine)

        records = [r for r in caplog.records if r.getMessage() == "Model load refused"]
        assert len(records) == 1
        assert records[0].scope == "processor"
        assert records[0].status == 1
        assert records[0].path == str(missing)

    def test_bytes_load_logs_size_not_temp_path(self, caplog, stub_engine, temp_dir):
        from spmkit import Processor

        with caplog.at_level(logging.DEBUG, logger="spmkit"):
            Processor(b"model-bytes", lib=stub_engine).close()

        paths = [r.path for r in caplog.records if hasattr(r, "path")]
        assert paths
        assert all(p == "<11 bytes>" for p in paths)

    def test_silent_by_default(self, caplog, processor):
        """Successful operations emit nothing at the default level."""
        with caplog.at_level(logging.WARNING, logger="spmkit"):
            processor.encode("hello")
            processor.decode([1, 2, 3])

        assert caplog.records == []
