"""Interactive setup script for the OSS ticket exporter.

Prompts for configuration values, validates them, and writes a .env file.

Usage:
    python scripts/configure.py
"""

import getpass
import sys
import urllib.request
from pathlib import Path

ENV_FILE = Path(__file__).parent.parent / ".env"

DEFAULT_JOB_CONTEXT = "CSD-Dunning-Orders-Handlers-Team(oss)"


def _prompt(label: str, default: str = "", secret: bool = False, required: bool = True) -> str:
    """Prompt for a value, showing the label and optional default."""
    display = f"  {label} [{default}]: " if default else f"  {label}: "
    while True:
        value = getpass.getpass(display) if secret else input(display).strip()
        if not value:
            if default:
                return default
            if not required:
                return ""
            print(f"    {label} is required — please enter a value.")
            continue
        return value


def _validate_portal_url(url: str) -> bool:
    """Return False for malformed URLs. Unreachable hosts only warn (VPN may be down)."""
    if not url.startswith("http"):
        print("    URL must start with http:// or https://")
        return False
    try:
        req = urllib.request.Request(url, method="HEAD")
        with urllib.request.urlopen(req, timeout=10) as resp:
            if resp.status >= 400:
                print(f"    URL returned status {resp.status} — double-check it is correct.")
    except Exception as e:
        # Self-signed portal certificates fail here as well
        print(f"    Could not connect: {e} (the scraper ignores certificate errors)")
    return True


def _validate_positive_int(value: str) -> bool:
    if value.isdigit() and int(value) > 0:
        return True
    print("    Enter a positive number of milliseconds.")
    return False


def main() -> None:
    print("=" * 60)
    print("  OSS Ticket Export — Interactive Setup")
    print("=" * 60)
    print()

    if ENV_FILE.exists():
        print(f"  Existing .env found at {ENV_FILE}")
        answer = input("  Overwrite it? [y/N] ").strip().lower()
        if answer != "y":
            print("  Aborted.")
            sys.exit(0)
        print()

    config: dict[str, str] = {}

    # ---- Portal ----
    print("--- OSS portal ---")
    while True:
        url = _prompt("Portal login URL")
        if _validate_portal_url(url):
            config["OSS_URL"] = url
            break
    config["OSS_USERNAME"] = _prompt("User ID")
    config["OSS_PASSWORD"] = _prompt("Password", secret=True)
    config["OSS_JOB_CONTEXT"] = _prompt(
        "Job context (exact text on the job picker)",
        default=DEFAULT_JOB_CONTEXT,
    )

    # ---- Optional settings ----
    print()
    print("--- Optional Settings (press Enter to keep the shown default) ---")
    while True:
        timeout = _prompt("Wait budget per step (ms)", default="30000")
        if _validate_positive_int(timeout):
            config["WAIT_TIMEOUT_MS"] = timeout
            break
    while True:
        timeout = _prompt("Download wait budget (ms)", default="60000")
        if _validate_positive_int(timeout):
            config["DOWNLOAD_TIMEOUT_MS"] = timeout
            break

    # ---- Write .env ----
    print()
    print(f"Writing {ENV_FILE}...")
    lines = [
        "# Generated by scripts/configure.py — edit as needed\n",
        "\n",
        "# ---- OSS portal ----\n",
        f"OSS_URL={config['OSS_URL']}\n",
        f"OSS_USERNAME={config['OSS_USERNAME']}\n",
        f"OSS_PASSWORD={config['OSS_PASSWORD']}\n",
        f"OSS_JOB_CONTEXT={config['OSS_JOB_CONTEXT']}\n",
        "\n",
        "# ---- Browser ----\n",
        f"WAIT_TIMEOUT_MS={config['WAIT_TIMEOUT_MS']}\n",
        f"DOWNLOAD_TIMEOUT_MS={config['DOWNLOAD_TIMEOUT_MS']}\n",
        "# LOGIN_TIMEOUT_MS=30000\n",
        "# HEADLESS=true\n",
        "# IGNORE_HTTPS_ERRORS=true\n",
        "# CAPTURE_ON_ERROR=true\n",
        "# SCREENSHOTS_DIR=./screenshots\n",
        "\n",
        "# ---- Failure e-mails (scrape command only) ----\n",
        "# NOTIFY_ENABLED=false\n",
        "# NOTIFY_EMAIL=\n",
        "# SMTP_HOST=\n",
        "# SMTP_PORT=587\n",
        "# SMTP_USERNAME=\n",
        "# SMTP_PASSWORD=\n",
    ]

    ENV_FILE.write_text("".join(lines), encoding="utf-8")
    print(f"  Written: {ENV_FILE}")

    print()
    print("=" * 60)
    print("  Setup complete! Try an export:")
    print("    python -m oss_tickets.main scrape --ticket-type Complaint --start 2024-01-15 --end 2024-01-20")
    print("  or start the API:")
    print("    python -m oss_tickets.main serve")
    print("=" * 60)


if __name__ == "__main__":
    main()
