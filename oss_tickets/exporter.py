"""Apply the ticket filter, run the query and capture the CSV export.

Also holds ``scrape_tickets``, the single entry point used by the CLI and
the HTTP API: one browser session per call, closed on every exit path.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, ContextManager, Iterator

from playwright.sync_api import Error as PwError, Page

from oss_tickets.calendar_nav import select_date
from oss_tickets.config import PortalSettings
from oss_tickets.decoder import decode
from oss_tickets.errors import ExportFailed, ScrapeError
from oss_tickets.models import ScrapeRequest, TicketRecord
from oss_tickets.selector import select_option, select_radio
from oss_tickets.session import SessionController, browser_page, capture_failure

logger = logging.getLogger(__name__)

# =============================================================================
# CSS SELECTORS / UI TEXT
# =============================================================================

SELECTORS = {
    # Date pickers in the filter form
    "start_date_input": "#BEGIN_ACCEPT_TIME",
    "end_date_input": "#END_ACCEPT_TIME",

    "query_button": "button.ant-btn.ant-btn-primary",

    # Header cell of the results grid; clickable once the result set has re-rendered
    "results_marker": 'label[for="SP_ID"][title="Operator"]',

    "export_icon": 'span[role="img"][aria-label="export"]',
    "csv_menu_item": 'li.ant-dropdown-menu-item:has-text("CSV")',
}

TICKET_TYPE_LABEL = "Ticket Type"
QUERY_BUTTON_TEXT = "Query"

PageFactory = Callable[[PortalSettings], ContextManager[Page]]


@contextmanager
def _step(name: str) -> Iterator[None]:
    """Tag failures inside an export step with the step name.

    Typed scrape errors keep their kind; raw driver and file errors become
    ExportFailed.
    """
    logger.info(f"Export step: {name}")
    try:
        yield
    except ScrapeError as e:
        if e.step is None:
            e.step = name
        raise
    except (PwError, OSError) as e:
        raise ExportFailed(f"{name} failed: {e}", step=name) from e


class TicketExporter:
    """Runs the filter -> query -> export sequence on an open filter panel."""

    def __init__(self, page: Page, settings: PortalSettings) -> None:
        self.page = page
        self.settings = settings

    def apply_filters(self, request: ScrapeRequest) -> None:
        timeout = self.settings.wait_timeout_ms
        with _step("ticket_type"):
            select_option(self.page, TICKET_TYPE_LABEL, request.ticket_type, timeout)
        with _step("start_date"):
            select_date(self.page, SELECTORS["start_date_input"], request.start_date, timeout)
        with _step("end_date"):
            select_date(self.page, SELECTORS["end_date_input"], request.end_date, timeout)
        with _step("status"):
            select_radio(self.page, request.status_filter, timeout_ms=timeout)

    def run_query(self) -> None:
        timeout = self.settings.wait_timeout_ms
        with _step("query"):
            self.page.locator(SELECTORS["query_button"], has_text=QUERY_BUTTON_TEXT).click(timeout=timeout)
            # Clicking the marker column blocks until the re-rendered grid accepts input
            self.page.locator(SELECTORS["results_marker"]).click(timeout=timeout)

    def export_csv(self) -> bytes:
        """Trigger the CSV export and return the downloaded file's bytes."""
        timeout = self.settings.wait_timeout_ms
        with _step("export_menu"):
            export_button = self.page.locator(SELECTORS["export_icon"])
            export_button.wait_for(timeout=timeout)
            export_button.click(timeout=timeout)

            csv_button = self.page.locator(SELECTORS["csv_menu_item"])
            csv_button.wait_for(timeout=timeout)

        with _step("download"):
            # Listen for the download before clicking, or the event can be missed
            with self.page.expect_download(timeout=self.settings.download_timeout_ms) as download_info:
                csv_button.click(timeout=timeout)
            download = download_info.value

            failure = download.failure()
            if failure is not None:
                raise ExportFailed(f"Download failed: {failure}", step="download")

            path = download.path()
            if path is None:
                raise ExportFailed("Download produced no file", step="download")
            data = Path(path).read_bytes()

        logger.info(f"Downloaded {download.suggested_filename} ({len(data)} bytes)")
        return data

    def run(self, request: ScrapeRequest) -> bytes:
        self.apply_filters(request)
        self.run_query()
        return self.export_csv()


def scrape_tickets(
    request: ScrapeRequest,
    settings: PortalSettings | None = None,
    page_factory: PageFactory = browser_page,
) -> list[TicketRecord]:
    """Main entry point: log in, export the filtered tickets and decode them.

    Args:
        request: Ticket type, date range and status filter.
        settings: Portal URL, credentials and wait budgets (defaults to env).
        page_factory: Context manager yielding a fresh page and closing the
            browser on exit.

    Returns:
        One dict per CSV row, keyed by the CSV header.
    """
    if settings is None:
        settings = PortalSettings.from_env()

    logger.info(
        f"Scraping '{request.ticket_type}' tickets {request.start_date.isoformat()} "
        f"to {request.end_date.isoformat()} ({request.status_filter})"
    )
    with page_factory(settings) as page:
        try:
            SessionController(page, settings).prepare()
            artifact = TicketExporter(page, settings).run(request)
        except ScrapeError as e:
            logger.error(f"Scrape failed: {e.describe()}")
            capture_failure(page, settings, f"error_{e.kind}")
            raise
        except Exception as e:
            logger.error(f"Error during scraping: {e}")
            capture_failure(page, settings, "error_general")
            raise

    records = decode(artifact)
    logger.info(f"Decoded {len(records)} ticket records")
    return records
