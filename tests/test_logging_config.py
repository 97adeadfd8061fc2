"""
Tests for purchase_tracker/logging_config.py and its settings wiring.
"""
import logging

from purchase_tracker import main  # noqa: F401  configures logging on import
from purchase_tracker.config import settings
from purchase_tracker.logging_config import setup_logging


class TestSetupLogging:
    def test_quiets_requested_loggers(self, tmp_path):
        setup_logging("INFO", str(tmp_path / "logs" / "app.log"), quiet_loggers=["carrier.sdk"])

        assert logging.getLogger("carrier.sdk").level == logging.WARNING
        assert (tmp_path / "logs").is_dir()

    def test_app_uses_settings_quiet_loggers(self):
        assert "sqlalchemy.engine" in settings.log_quiet_loggers
        for name in settings.log_quiet_loggers:
            assert logging.getLogger(name).level == logging.WARNING
