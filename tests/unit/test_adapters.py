"""
Unit tests for the console payout sender, system clock and settings.
"""

import logging
import time

import pytest

from nameregistry.adapters.clock.system import SystemClock
from nameregistry.adapters.payout.console import ConsolePayoutSender
from nameregistry.config.settings import Settings
from nameregistry.domain.models import MAX_YEAR_DURATION_SECONDS, Payout
from tests.support import REFERRER, TOKEN


class TestConsolePayoutSender:
    """Tests for ConsolePayoutSender adapter."""

    def test_send_payout_logs_transfer(self, caplog: pytest.LogCaptureFixture) -> None:
        """Payout is logged with recipient, token and amount."""
        sender = ConsolePayoutSender()

        with caplog.at_level(logging.INFO):
            sender.send_payout(Payout(recipient=REFERRER, token=TOKEN, amount=42))

        assert "[PAYOUT]" in caplog.text
        assert REFERRER.to_hex() in caplog.text
        assert TOKEN.to_hex() in caplog.text
        assert "Amount: 42" in caplog.text

    def test_send_payout_uses_module_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            ConsolePayoutSender().send_payout(Payout(REFERRER, TOKEN, 1))

        assert caplog.records[0].name == "nameregistry.adapters.payout.console"

    def test_send_payout_returns_none(self) -> None:
        assert ConsolePayoutSender().send_payout(Payout(REFERRER, TOKEN, 1)) is None


class TestSystemClock:
    def test_now_is_whole_seconds(self) -> None:
        now = SystemClock().now()

        assert isinstance(now, int)
        assert abs(now - time.time()) < 5


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("STORAGE_BACKEND", raising=False)
        settings = Settings(_env_file=None)

        assert settings.storage_backend == "memory"
        assert settings.year_duration_seconds == 31_536_000
        assert settings.referral_rate_cap_bps == 2_500

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        monkeypatch.setenv("YEAR_DURATION_SECONDS", "60")

        settings = Settings(_env_file=None)

        assert settings.storage_backend == "postgres"
        assert settings.year_duration_seconds == 60

    def test_rejects_oversized_year(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("YEAR_DURATION_SECONDS", str(MAX_YEAR_DURATION_SECONDS + 1))

        with pytest.raises(ValueError):
            Settings(_env_file=None)

    def test_rejects_unknown_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORAGE_BACKEND", "redis")

        with pytest.raises(ValueError):
            Settings(_env_file=None)
