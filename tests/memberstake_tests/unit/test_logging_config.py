"""
Tests for structured JSON logging of staking events.
"""

import json
import logging

from memberstake.core.logging_config import (
    StakingJsonFormatter,
    configure_from_env,
    get_logger,
    setup_logging,
)


def _format(formatter, **extra):
    record = logging.LogRecord(
        name="memberstake.core.staking.staking_rewards",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg="Stake added",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


class TestStakingJsonFormatter:
    def test_adds_context_fields(self):
        payload = _format(StakingJsonFormatter(environment="staging"), event="staking.staked", amount=100)

        assert payload["message"] == "Stake added"
        assert payload["environment"] == "staging"
        assert payload["service"] == "memberstake"
        assert payload["level"] == "info"
        assert payload["event"] == "staking.staked"
        assert payload["amount"] == 100
        assert payload["timestamp"]
        assert payload["source"]["line"] == 42

    def test_records_without_event_are_tagged(self):
        payload = _format(StakingJsonFormatter())
        assert payload["event"] == "log"
        assert payload["environment"] == "production"


class TestSetupLogging:
    def test_console_only(self):
        logger = setup_logging(name="memberstake.test_console", level="DEBUG")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, StakingJsonFormatter)

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(name="memberstake.test_repeat")
        logger = setup_logging(name="memberstake.test_repeat")
        assert len(logger.handlers) == 1

    def test_file_handler_writes_json(self, tmp_path):
        log_file = tmp_path / "logs" / "staking.json"
        logger = setup_logging(
            name="memberstake.test_file",
            log_file=str(log_file),
            enable_console=False,
        )
        logger.info("Reward paid", extra={"event": "staking.reward_paid", "amount": 7})
        for handler in logger.handlers:
            handler.flush()

        payload = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert payload["event"] == "staking.reward_paid"
        assert payload["amount"] == 7

    def test_configure_from_env_uses_config(self, tmp_path, monkeypatch):
        log_file = tmp_path / "env.json"
        monkeypatch.setattr("memberstake.core.logging_config.Config.LOG_FILE", str(log_file))
        monkeypatch.setattr("memberstake.core.logging_config.Config.LOG_LEVEL", "WARNING")
        monkeypatch.setattr("memberstake.core.logging_config.Config.ENVIRONMENT", "staging")

        logger = configure_from_env("memberstake.test_env")
        logger.warning("Reward period funded", extra={"event": "staking.reward_added"})
        for handler in logger.handlers:
            handler.flush()

        assert logger.level == logging.WARNING
        payload = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert payload["environment"] == "staging"

    def test_get_logger_reuses_configured_logger(self):
        logger = setup_logging(name="memberstake.test_get")
        handler = logger.handlers[0]
        assert get_logger("memberstake.test_get") is logger
        assert logger.handlers == [handler]
