#!/usr/bin/env python3
"""Send a sample failure notification to verify SMTP configuration.

Usage:
    python scripts/test_notify.py

Reads SMTP settings from the environment (or .env). Exits non-zero if
NOTIFY_ENABLED is false, SMTP config is incomplete, or delivery fails,
so a scheduled job shows a clear failure rather than a silent no-op.
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

# Guard: fail loudly instead of silently no-op-ing
if os.getenv("NOTIFY_ENABLED", "false").lower() not in ("true", "1", "yes", "on"):
    print("ERROR: NOTIFY_ENABLED is not set to true — nothing to test.", file=sys.stderr)
    sys.exit(1)

required = {
    "NOTIFY_EMAIL": os.getenv("NOTIFY_EMAIL", "").strip(),
    "SMTP_HOST": os.getenv("SMTP_HOST", "").strip(),
    "SMTP_USERNAME": os.getenv("SMTP_USERNAME", "").strip(),
    "SMTP_PASSWORD": os.getenv("SMTP_PASSWORD", ""),
}
missing = [k for k, v in required.items() if not v]
if missing:
    print(f"ERROR: Missing required SMTP variables: {', '.join(missing)}", file=sys.stderr)
    sys.exit(1)

from oss_tickets.errors import ExportFailed  # noqa: E402 (after env validation)
from oss_tickets.notifier import format_failure, send_notification  # noqa: E402

sample = ExportFailed("This is a test notification; no export was attempted.", step="download")
subject, body = format_failure(sample, ["WARNING [test]: sample warning line"])

if not send_notification(f"{subject} (test)", body):
    print("ERROR: Notification could not be sent — see the log above.", file=sys.stderr)
    sys.exit(1)
print(f"Test notification sent to {os.getenv('NOTIFY_EMAIL')}. Check your inbox.")
