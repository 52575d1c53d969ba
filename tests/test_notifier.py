"""
Tests for oss_tickets/notifier.py: SMTP alerts and warning collection.
"""

from __future__ import annotations

import logging
import smtplib
from unittest.mock import MagicMock

import pytest

from oss_tickets import notifier
from oss_tickets.errors import DateNotSelectable
from oss_tickets.notifier import WarningCollector, format_failure, send_notification


@pytest.fixture()
def smtp_env(monkeypatch):
    monkeypatch.setenv("NOTIFY_ENABLED", "true")
    monkeypatch.setenv("NOTIFY_EMAIL", "ops@example.test")
    monkeypatch.setenv("SMTP_HOST", "smtp.example.test")
    monkeypatch.setenv("SMTP_PORT", "587")
    monkeypatch.setenv("SMTP_USERNAME", "bot@example.test")
    monkeypatch.setenv("SMTP_PASSWORD", "pw")
    smtp = MagicMock()
    monkeypatch.setattr(notifier.smtplib, "SMTP", smtp)
    return smtp


class TestSendNotification:
    def test_disabled_by_default(self, monkeypatch):
        monkeypatch.delenv("NOTIFY_ENABLED", raising=False)
        assert send_notification("subject", "body") is False

    def test_incomplete_config(self, smtp_env, monkeypatch):
        monkeypatch.setenv("SMTP_HOST", "")
        assert send_notification("subject", "body") is False
        smtp_env.assert_not_called()

    def test_sends_with_starttls(self, smtp_env):
        assert send_notification("Export failed", "details") is True

        server = smtp_env.return_value.__enter__.return_value
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("bot@example.test", "pw")
        msg = server.send_message.call_args.args[0]
        assert msg["Subject"] == "Export failed"
        assert msg["To"] == "ops@example.test"

    def test_delivery_error_is_reported_not_raised(self, smtp_env):
        smtp_env.return_value.__enter__.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad")
        assert send_notification("subject", "body") is False


class TestFormatFailure:
    def test_scrape_error_details(self):
        error = DateNotSelectable("No calendar cell for 2024-01-20", step="end_date")
        subject, body = format_failure(error, ["WARNING [oss_tickets.decoder]: short row"])

        assert "DateNotSelectable" in subject
        assert "Step: end_date" in body
        assert "No calendar cell for 2024-01-20" in body
        assert "short row" in body

    def test_other_exception(self):
        subject, body = format_failure(KeyError("OSS_URL"), [])
        assert "KeyError" in subject
        assert "Step: -" in body
        assert "Warnings" not in body


class TestWarningCollector:
    def test_collects_warnings_only(self):
        collector = WarningCollector()
        log = logging.getLogger("test.collector")
        log.addHandler(collector)
        try:
            log.warning("first")
            log.info("ignored")
            log.error("second")
        finally:
            log.removeHandler(collector)

        assert collector.messages == [
            "WARNING [test.collector]: first",
            "ERROR [test.collector]: second",
        ]
