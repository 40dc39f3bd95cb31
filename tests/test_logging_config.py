"""Tests for the logging configuration."""
from fuel_ledger.logging_config import RUN_LOGGERS, build_logging_config


class TestBuildLoggingConfig:
    """Test the dictConfig built for the service, scheduler and CLI."""

    def test_log_files_live_in_log_dir(self, tmp_path):
        """Test both file handlers write under the configured directory."""
        config = build_logging_config(tmp_path, "DEBUG")

        assert config["handlers"]["file"]["filename"] == str(tmp_path / "fuel_ledger.log")
        assert config["handlers"]["ledger_runs"]["filename"] == str(tmp_path / "ledger_runs.log")
        assert config["root"]["level"] == "DEBUG"
        assert config["root"]["handlers"] == ["console", "file"]

    def test_run_loggers_feed_run_log(self, tmp_path):
        """Test ledger and scheduler loggers also write the run log."""
        config = build_logging_config(tmp_path, "INFO")

        assert "scheduler" in RUN_LOGGERS
        for name in RUN_LOGGERS:
            assert config["loggers"][name]["handlers"] == ["ledger_runs"]
            assert config["loggers"][name]["propagate"] is True

    def test_noisy_libraries_are_quieted(self, tmp_path):
        """Test driver and scheduler internals only log warnings."""
        loggers = build_logging_config(tmp_path, "DEBUG")["loggers"]

        assert loggers["sqlalchemy.engine"]["level"] == "WARNING"
        assert loggers["apscheduler.executors.default"]["level"] == "WARNING"
