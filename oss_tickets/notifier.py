"""Email alerts for failed ticket exports."""

from __future__ import annotations

import logging
import os
import smtplib
from datetime import datetime
from email.message import EmailMessage

from oss_tickets.errors import ScrapeError

logger = logging.getLogger(__name__)


def _smtp_config() -> dict[str, str] | None:
    if os.getenv("NOTIFY_ENABLED", "false").lower() not in ("true", "1", "yes", "on"):
        return None

    config = {
        "notify_email": os.getenv("NOTIFY_EMAIL", "").strip(),
        "smtp_host": os.getenv("SMTP_HOST", "").strip(),
        "smtp_port": os.getenv("SMTP_PORT", "587").strip(),
        "smtp_username": os.getenv("SMTP_USERNAME", "").strip(),
        "smtp_password": os.getenv("SMTP_PASSWORD", ""),
    }
    if not all(config.values()):
        logger.warning(
            "NOTIFY_ENABLED=true but SMTP config is incomplete — "
            "requires NOTIFY_EMAIL, SMTP_HOST, SMTP_USERNAME, SMTP_PASSWORD"
        )
        return None
    return config


def send_notification(subject: str, body: str) -> bool:
    """Send an email notification via SMTP.

    No-ops if NOTIFY_ENABLED is false/unset or if any required SMTP config
    variable is missing. Delivery problems are logged, not raised, so a
    broken mail server never hides the export failure being reported.

    Returns:
        True if the message was handed to the SMTP server.
    """
    config = _smtp_config()
    if config is None:
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = config["smtp_username"]
    msg["To"] = config["notify_email"]
    msg.set_content(body)

    port = int(config["smtp_port"])
    try:
        if port == 465:
            with smtplib.SMTP_SSL(config["smtp_host"], port) as smtp:
                smtp.login(config["smtp_username"], config["smtp_password"])
                smtp.send_message(msg)
        else:
            with smtplib.SMTP(config["smtp_host"], port) as smtp:
                smtp.ehlo()
                smtp.starttls()
                smtp.login(config["smtp_username"], config["smtp_password"])
                smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.warning(f"Failed to send notification email: {e}")
        return False

    logger.info(f"Notification sent to {config['notify_email']}: {subject}")
    return True


def format_failure(error: Exception, warnings: list[str]) -> tuple[str, str]:
    """Build the (subject, body) pair describing a failed export."""
    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(error, ScrapeError):
        kind, step = error.kind, error.step or "-"
    else:
        kind, step = type(error).__name__, "-"

    subject = f"[OSS Ticket Export] {kind} at {now}"
    lines = [
        "The ticket export did not complete.",
        "",
        f"Failure: {kind}",
        f"Step: {step}",
        f"Message: {error}",
        f"Time: {now}",
    ]
    if warnings:
        lines += ["", "Warnings logged during the run:"]
        lines += [f"  {w}" for w in warnings]
    return subject, "\n".join(lines) + "\n"


class WarningCollector(logging.Handler):
    """Log handler that captures WARNING+ messages for end-of-run reporting."""

    def __init__(self) -> None:
        super().__init__(level=logging.WARNING)
        self.setFormatter(logging.Formatter("%(levelname)s [%(name)s]: %(message)s"))
        self.messages: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(self.format(record))
