"""
End-to-end tests for oss_tickets/exporter.py against the fake portal.

Covers the full scrape scenario, step tagging of failures, the download
race (click must happen while the download listener is armed), and the
guarantee that the session is closed exactly once on every exit path.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from unittest.mock import MagicMock

import pytest
from playwright.sync_api import Error as PwError

from fakes import FakePortalPage, make_page_factory
from oss_tickets import exporter
from oss_tickets.errors import AuthenticationFailed, DateNotSelectable, ExportFailed, OptionNotFound
from oss_tickets.exporter import TicketExporter, scrape_tickets
from oss_tickets.models import ScrapeRequest
from oss_tickets.session import SessionController


@pytest.fixture()
def request_jan() -> ScrapeRequest:
    return ScrapeRequest(
        ticket_type="Complaint",
        start_date=date(2024, 1, 15),
        end_date=date(2024, 1, 20),
        status_filter="Current",
    )


class TestScrapeScenario:
    def test_full_scrape(self, portal: FakePortalPage, settings, request_jan):
        records = scrape_tickets(request_jan, settings, page_factory=make_page_factory(portal))

        assert portal.start_calendar.selected == "2024-01-15"
        assert portal.end_calendar.selected == "2024-01-20"
        assert portal.start_calendar.paging == [] and portal.end_calendar.paging == []
        assert portal.picked_ticket_type == "Complaint"
        assert portal.picked_radio == "Current"
        assert portal.closed == 1

        assert len(records) == 2
        assert list(records[0]) == ["Ticket No", "Ticket Type", "Accept Time", "Status"]
        assert records[1]["Ticket No"] == "TT-1002"

    def test_steps_run_in_order(self, portal, settings, request_jan):
        scrape_tickets(request_jan, settings, page_factory=make_page_factory(portal))

        query = f"click {exporter.SELECTORS['query_button']}[{exporter.QUERY_BUTTON_TEXT}]"
        order = [
            portal.actions.index("option Complaint"),
            portal.actions.index("radio Current"),
            portal.actions.index(query),
            portal.actions.index(f"click {exporter.SELECTORS['results_marker']}"),
            portal.actions.index(f"click {exporter.SELECTORS['export_icon']}"),
            portal.actions.index("csv listening"),
        ]
        assert order == sorted(order)

    def test_pages_calendars_from_another_month(self, csv_file, settings, request_jan):
        page = FakePortalPage(csv_file, calendar_start=(2025, 5))
        scrape_tickets(request_jan, settings, page_factory=make_page_factory(page))

        assert page.start_calendar.paging == ["prev_year"] + ["prev_month"] * 5
        assert page.end_calendar.selected == "2024-01-20"

    def test_header_only_export(self, tmp_path, settings, request_jan):
        csv_path = tmp_path / "empty.csv"
        csv_path.write_bytes(b"Ticket No,Ticket Type,Status\r\n")
        page = FakePortalPage(csv_path)

        assert scrape_tickets(request_jan, settings, page_factory=make_page_factory(page)) == []


class TestScrapeFailures:
    def test_unknown_ticket_type_stops_before_query(self, portal, settings, request_jan):
        bad = replace(request_jan, ticket_type="Billing")

        with pytest.raises(OptionNotFound) as exc_info:
            scrape_tickets(bad, settings, page_factory=make_page_factory(portal))

        assert exc_info.value.step == "ticket_type"
        assert not any(exporter.SELECTORS["query_button"] in a for a in portal.actions)
        assert portal.closed == 1

    def test_login_failure_closes_session(self, csv_file, settings, request_jan):
        page = FakePortalPage(csv_file, login_ok=False)

        with pytest.raises(AuthenticationFailed):
            scrape_tickets(request_jan, settings, page_factory=make_page_factory(page))

        assert page.closed == 1
        assert page.picked_ticket_type is None
        assert not any(a.startswith("text ") for a in page.actions)

    def test_unreachable_portal_closes_session(self, csv_file, settings, request_jan):
        class OfflinePortal(FakePortalPage):
            def goto(self, url, **kwargs):
                raise PwError(f"net::ERR_CONNECTION_REFUSED at {url}")

        page = OfflinePortal(csv_file)

        with pytest.raises(AuthenticationFailed) as exc_info:
            scrape_tickets(request_jan, settings, page_factory=make_page_factory(page))

        assert exc_info.value.step == "login"
        assert page.closed == 1
        assert page.actions == []

    def test_unselectable_end_date(self, portal, settings, request_jan):
        portal.end_calendar.max_date = date(2024, 1, 18)

        with pytest.raises(DateNotSelectable) as exc_info:
            scrape_tickets(request_jan, settings, page_factory=make_page_factory(portal))

        assert exc_info.value.step == "end_date"
        assert portal.start_calendar.confirmed
        assert portal.closed == 1

    def test_download_failure(self, csv_file, settings, request_jan):
        page = FakePortalPage(csv_file, download_failure="canceled")

        with pytest.raises(ExportFailed) as exc_info:
            scrape_tickets(request_jan, settings, page_factory=make_page_factory(page))

        assert exc_info.value.step == "download"
        assert page.closed == 1

    def test_unexpected_error_still_closes(self, portal, settings, request_jan, monkeypatch):
        monkeypatch.setattr(exporter, "decode", MagicMock())
        monkeypatch.setattr(SessionController, "prepare", MagicMock(side_effect=KeyError("boom")))

        with pytest.raises(KeyError):
            scrape_tickets(request_jan, settings, page_factory=make_page_factory(portal))

        assert portal.closed == 1
        exporter.decode.assert_not_called()

    def test_failure_artifacts_written(self, csv_file, settings, request_jan):
        page = FakePortalPage(csv_file, login_ok=False)
        capture = replace(settings, capture_on_error=True)

        with pytest.raises(AuthenticationFailed):
            scrape_tickets(request_jan, capture, page_factory=make_page_factory(page))

        names = [p.name for p in capture.screenshots_dir.iterdir()]
        assert any(n.endswith("error_AuthenticationFailed.png") for n in names)


class TestTicketExporter:
    def test_driver_error_becomes_export_failed(self, settings):
        from playwright.sync_api import TimeoutError as PwTimeout

        page = MagicMock()
        page.locator.return_value.click.side_effect = PwTimeout("Timeout 200ms exceeded")

        with pytest.raises(ExportFailed) as exc_info:
            TicketExporter(page, settings).run_query()
        assert exc_info.value.step == "query"

    def test_export_reads_download_into_memory(self, portal, settings, csv_file):
        data = TicketExporter(portal, settings).export_csv()

        assert data == csv_file.read_bytes()
        assert "csv listening" in portal.actions
        assert "csv unobserved" not in portal.actions

    def test_missing_download_file(self, portal, settings, tmp_path):
        portal.download = MagicMock()
        portal.download.failure.return_value = None
        portal.download.path.return_value = tmp_path / "vanished.csv"

        with pytest.raises(ExportFailed) as exc_info:
            TicketExporter(portal, settings).export_csv()
        assert exc_info.value.step == "download"
