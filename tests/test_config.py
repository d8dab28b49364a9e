"""
Tests for configuration and structured logging
"""

import json
import logging

from vault_banking.config import VaultConfig, reload_config
from vault_banking.logging_config import JSONFormatter, log_action, setup_logging


class TestConfig:
    """Test environment-driven settings"""

    def test_defaults(self):
        config = VaultConfig()
        assert config.reset_token_ttl_minutes == 15
        assert config.activity_log_limit == 10
        assert config.account_number_max_attempts == 5
        assert not config.email_case_sensitive

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("VAULT_API_PORT", "8080")
        monkeypatch.setenv("VAULT_DATABASE_URL", "memory://")
        monkeypatch.setenv("VAULT_EMAIL_CASE_SENSITIVE", "true")

        config = reload_config()

        assert config.api_port == 8080
        assert config.database_url == "memory://"
        assert config.email_case_sensitive
        monkeypatch.undo()
        reload_config()

    def test_cors_origin_list(self):
        config = VaultConfig(cors_origins="http://a.test, http://b.test,")
        assert config.cors_origin_list == ["http://a.test", "http://b.test"]


class TestStructuredLogging:
    """Test JSON log output"""

    def test_log_action_fields_reach_json(self):
        logger = setup_logging("DEBUG", "json", logger_name="vault_test_json")
        records = []

        class Capture(logging.Handler):
            def emit(self, record):
                records.append(record)

        logger.addHandler(Capture())
        log_action(logger, "info", "Deposit applied", user_id="acc-1", action="deposit",
                   resource="entry-1", extra={"amount": "10.00"})

        payload = json.loads(JSONFormatter().format(records[0]))
        assert payload["message"] == "Deposit applied"
        assert payload["level"] == "INFO"
        assert payload["user_id"] == "acc-1"
        assert payload["action"] == "deposit"
        assert payload["extra"] == {"amount": "10.00"}
        assert "correlation_id" not in payload

    def test_text_format(self):
        logger = setup_logging("WARNING", "text", logger_name="vault_test_text")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0].formatter, JSONFormatter)
