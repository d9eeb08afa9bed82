"""
Tests for configuration and structured logging
"""

import json
import logging

from core_ledger.config import LedgerConfig, get_config, reload_config
from core_ledger.logging_config import JSONFormatter, setup_logging, log_action


class TestLedgerConfig:
    """Test environment-based configuration"""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LEDGER_API_PORT", raising=False)
        config = LedgerConfig(_env_file=None)
        assert config.api_port == 3000
        assert config.history_size == 10
        assert config.description_max_length == 10

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("LEDGER_API_PORT", "9999")
        monkeypatch.setenv("LEDGER_LOG_FORMAT", "text")
        config = LedgerConfig(_env_file=None)
        assert config.api_port == 9999
        assert config.log_format == "text"

    def test_reload_replaces_global(self, monkeypatch):
        monkeypatch.setenv("LEDGER_HISTORY_SIZE", "5")
        try:
            assert reload_config().history_size == 5
            assert get_config().history_size == 5
        finally:
            monkeypatch.delenv("LEDGER_HISTORY_SIZE")
            reload_config()


class TestStructuredLogging:
    """Test JSON log output"""

    def test_json_formatter(self):
        record = logging.LogRecord(
            "core_ledger.test", logging.INFO, __file__, 1, "hello", (), None
        )
        record.action = "process_transaction"
        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["message"] == "hello"
        assert entry["action"] == "process_transaction"
        assert "resource" not in entry

    def test_log_action_emits_structured_fields(self, capsys):
        logger = setup_logging("INFO", "json", logger_name="core_ledger.test_log")
        log_action(
            logger, "info", "Transaction accepted",
            action="process_transaction", resource="account:1",
            extra={"amount": 10}
        )

        entry = json.loads(capsys.readouterr().err.strip())
        assert entry["resource"] == "account:1"
        assert entry["extra"] == {"amount": 10}

    def test_log_action_respects_level(self, capsys):
        logger = setup_logging("WARNING", "json", logger_name="core_ledger.test_quiet")
        log_action(logger, "info", "hidden")
        assert capsys.readouterr().err == ""
