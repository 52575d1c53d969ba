"""Portal connection settings, read from the environment (or .env)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from oss_tickets.errors import ConfigurationError

DEFAULT_JOB_CONTEXT = "CSD-Dunning-Orders-Handlers-Team(oss)"
DEFAULT_SCREENSHOTS_DIR = Path(__file__).parent.parent / "screenshots"


def _str_to_bool(value: str) -> bool:
    """Convert environment variable string to boolean."""
    return value.lower() in ("true", "1", "yes", "on")


def _req(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required env var: {name}")
    return value


@dataclass(frozen=True)
class PortalSettings:
    url: str
    username: str
    password: str
    job_context: str = DEFAULT_JOB_CONTEXT
    headless: bool = True
    ignore_https_errors: bool = True
    # Wait budgets in milliseconds, matching Playwright's timeout unit
    wait_timeout_ms: int = 30000
    login_timeout_ms: int = 30000
    download_timeout_ms: int = 60000
    screenshots_dir: Path = DEFAULT_SCREENSHOTS_DIR
    capture_on_error: bool = True

    @classmethod
    def from_env(cls) -> PortalSettings:
        """Load settings from environment variables.

        OSS_URL, OSS_USERNAME and OSS_PASSWORD are required; everything
        else falls back to the defaults above.
        """
        return cls(
            url=_req("OSS_URL"),
            username=_req("OSS_USERNAME"),
            password=_req("OSS_PASSWORD"),
            job_context=os.getenv("OSS_JOB_CONTEXT", DEFAULT_JOB_CONTEXT),
            headless=_str_to_bool(os.getenv("HEADLESS", "true")),
            ignore_https_errors=_str_to_bool(os.getenv("IGNORE_HTTPS_ERRORS", "true")),
            wait_timeout_ms=int(os.getenv("WAIT_TIMEOUT_MS", "30000")),
            login_timeout_ms=int(os.getenv("LOGIN_TIMEOUT_MS", "30000")),
            download_timeout_ms=int(os.getenv("DOWNLOAD_TIMEOUT_MS", "60000")),
            screenshots_dir=Path(os.getenv("SCREENSHOTS_DIR", str(DEFAULT_SCREENSHOTS_DIR))),
            capture_on_error=_str_to_bool(os.getenv("CAPTURE_ON_ERROR", "true")),
        )
