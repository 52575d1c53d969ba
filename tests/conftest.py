"""
Shared pytest fixtures. The Playwright stand-ins live in fakes.py; no
browser is started anywhere in the test suite.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from fakes import FakePortalPage
from oss_tickets.config import PortalSettings


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings(tmp_path) -> PortalSettings:
    return PortalSettings(
        url="https://oss.example.test/login",
        username="agent",
        password="secret",
        wait_timeout_ms=200,
        login_timeout_ms=200,
        download_timeout_ms=200,
        screenshots_dir=tmp_path / "screenshots",
        capture_on_error=False,
    )


@pytest.fixture()
def csv_file(tmp_path) -> Path:
    path = tmp_path / "TroubleTickets.csv"
    path.write_bytes(
        b"\xef\xbb\xbfTicket No,Ticket Type,Accept Time,Status\r\n"
        b"TT-1001,Complaint,2024-01-15 09:12:00,Open\r\n"
        b"TT-1002,Complaint,2024-01-18 14:40:00,Closed\r\n"
    )
    return path


@pytest.fixture()
def portal(csv_file) -> FakePortalPage:
    return FakePortalPage(csv_file)
