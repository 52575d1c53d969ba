"""Browser session scope and the login/navigation phases of the OSS portal."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Iterator

from playwright.sync_api import sync_playwright, Page, Browser, Error as PwError

from oss_tickets.config import PortalSettings
from oss_tickets.errors import AuthenticationFailed, NavigationTimeout

logger = logging.getLogger(__name__)

# =============================================================================
# CSS SELECTORS / UI TEXT
# =============================================================================

SELECTORS = {
    # Login page
    "username_input": 'input[placeholder="User ID"]',
    "password_input": 'input[placeholder="Password"]',

    # Job picker shown after a successful login
    "job_prompt": "text=Please select a job to log in",

    # Main menu toggle and the panel it opens
    "menu_toggle": ".js-menu",
    "menu_panel": ".nav-title",

    # "More" button on the monitoring view; reveals the full filter form
    "more_button": 'button:has(span[role="img"][aria-label="more"])',
}

LOGIN_BUTTON_TEXT = "OSS Login"
MONITORING_MENU_TEXT = "Trouble Ticket Monitoring"


class Phase(IntEnum):
    UNAUTHENTICATED = 0
    AUTHENTICATED = 1
    CONTEXT_SELECTED = 2
    MONITORING_VIEW_OPEN = 3
    FILTER_PANEL_OPEN = 4


@contextmanager
def browser_page(settings: PortalSettings) -> Iterator[Page]:
    """Launch Chromium, yield one page, and always close the browser."""
    with sync_playwright() as p:
        browser: Browser = p.chromium.launch(
            headless=settings.headless,
            args=["--ignore-certificate-errors"],
        )
        try:
            context = browser.new_context(ignore_https_errors=settings.ignore_https_errors)
            page: Page = context.new_page()
            page.set_default_timeout(settings.wait_timeout_ms)
            yield page
        finally:
            browser.close()
            logger.info("Browser closed")


def take_screenshot(page: Page, screenshots_dir: Path, name: str) -> Path:
    """Save a screenshot for debugging."""
    screenshots_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = screenshots_dir / f"{timestamp}_{name}.png"
    page.screenshot(path=str(path), full_page=True)
    logger.info(f"Screenshot saved: {path}")
    return path


def dump_html(page: Page, screenshots_dir: Path, name: str) -> Path:
    """Dump the page HTML to a file for inspection."""
    screenshots_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    path = screenshots_dir / f"{timestamp}_{name}.html"
    path.write_text(page.content(), encoding="utf-8")
    logger.info(f"HTML dump saved: {path}")
    return path


def capture_failure(page: Page, settings: PortalSettings, name: str) -> None:
    """Screenshot and HTML dump after a failure; never raises."""
    if not settings.capture_on_error:
        return
    try:
        take_screenshot(page, settings.screenshots_dir, name)
        dump_html(page, settings.screenshots_dir, name)
    except Exception as e:
        logger.warning(f"Could not capture failure artifacts: {e}")


class SessionController:
    """Walks a fresh page from the login screen to the open filter panel.

    Phases run strictly in order:
      UNAUTHENTICATED -> AUTHENTICATED -> CONTEXT_SELECTED
        -> MONITORING_VIEW_OPEN -> FILTER_PANEL_OPEN

    Each transition waits for its own readiness signal. A signal that does
    not show up within the wait budget, or any other driver error during a
    phase, raises NavigationTimeout (AuthenticationFailed during login,
    where a rejected password and an unreachable portal look the same).
    The controller does not own the browser; whoever opened the page
    closes it.
    """

    def __init__(self, page: Page, settings: PortalSettings) -> None:
        self.page = page
        self.settings = settings
        self.phase = Phase.UNAUTHENTICATED

    def _enter(self, target: Phase) -> None:
        if target != self.phase + 1:
            raise RuntimeError(f"Cannot move from {self.phase.name} to {target.name}")

    def _reached(self, target: Phase) -> None:
        self.phase = target
        logger.info(f"Portal session is now {target.name}")

    def login(self) -> None:
        """Submit credentials and wait for the job picker prompt."""
        self._enter(Phase.AUTHENTICATED)
        page = self.page
        logger.info("Navigating to login page...")
        try:
            page.goto(self.settings.url, wait_until="networkidle", timeout=self.settings.login_timeout_ms)
            logger.info("Filling login credentials...")
            page.fill(SELECTORS["username_input"], self.settings.username)
            page.fill(SELECTORS["password_input"], self.settings.password)
            page.get_by_role("button", name=LOGIN_BUTTON_TEXT).click()

            # The job picker only appears for an accepted login
            page.wait_for_selector(SELECTORS["job_prompt"], timeout=self.settings.login_timeout_ms)
        except PwError as e:
            raise AuthenticationFailed(f"Login did not reach the job picker: {e}", step="login") from e
        self._reached(Phase.AUTHENTICATED)

    def select_context(self) -> None:
        """Pick the configured job context and wait for the portal to settle."""
        self._enter(Phase.CONTEXT_SELECTED)
        job = self.settings.job_context
        logger.info(f"Selecting job context '{job}'...")
        try:
            self.page.get_by_text(job, exact=True).dblclick(timeout=self.settings.wait_timeout_ms)
            self.page.wait_for_load_state("networkidle", timeout=self.settings.wait_timeout_ms)
        except PwError as e:
            raise NavigationTimeout(f"Job context '{job}' did not load: {e}", step="select_context") from e
        self._reached(Phase.CONTEXT_SELECTED)

    def open_monitoring_view(self) -> None:
        """Open the main menu and go to Trouble Ticket Monitoring."""
        self._enter(Phase.MONITORING_VIEW_OPEN)
        page = self.page
        timeout = self.settings.wait_timeout_ms
        logger.info(f"Opening '{MONITORING_MENU_TEXT}'...")
        try:
            page.click(SELECTORS["menu_toggle"], timeout=timeout)
            page.wait_for_selector(SELECTORS["menu_panel"], timeout=timeout)
            page.get_by_text(MONITORING_MENU_TEXT, exact=True).click(timeout=timeout)
            page.wait_for_load_state("networkidle", timeout=timeout)
        except PwError as e:
            raise NavigationTimeout(
                f"'{MONITORING_MENU_TEXT}' view did not load: {e}", step="open_monitoring_view"
            ) from e
        self._reached(Phase.MONITORING_VIEW_OPEN)

    def open_filter_panel(self) -> None:
        """Reveal the filter form hidden behind the "more" button."""
        self._enter(Phase.FILTER_PANEL_OPEN)
        timeout = self.settings.wait_timeout_ms
        logger.info("Revealing filter panel...")
        try:
            more_button = self.page.locator(SELECTORS["more_button"])
            more_button.wait_for(timeout=timeout)
            more_button.click(timeout=timeout)
        except PwError as e:
            raise NavigationTimeout(f"Filter panel did not open: {e}", step="open_filter_panel") from e
        self._reached(Phase.FILTER_PANEL_OPEN)

    def prepare(self) -> None:
        """Run every remaining phase up to FILTER_PANEL_OPEN."""
        transitions = {
            Phase.AUTHENTICATED: self.login,
            Phase.CONTEXT_SELECTED: self.select_context,
            Phase.MONITORING_VIEW_OPEN: self.open_monitoring_view,
            Phase.FILTER_PANEL_OPEN: self.open_filter_panel,
        }
        while self.phase < Phase.FILTER_PANEL_OPEN:
            transitions[Phase(self.phase + 1)]()
