"""Drive the portal's Ant Design date-picker popup to a target day.

The popup only shows one month at a time and has no free-text entry, so a
date is reached by paging: first year by year with the double-chevron
buttons, then month by month with the single-chevron buttons. Once the
popup shows the target month, the day cell (``td[title="YYYY-MM-DD"]``)
is clicked and the selection is confirmed with the OK button.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from playwright.sync_api import Locator, Page, TimeoutError as PwTimeout

from oss_tickets.errors import DateNotSelectable, NavigationTimeout
from oss_tickets.models import CalendarCursor

logger = logging.getLogger(__name__)

SELECTORS = {
    # Popup of the picker that currently has focus
    "picker_dropdown": ".ant-picker-dropdown:visible",

    # Header labels, e.g. "2024" and "Jan"
    "year_label": ".ant-picker-year-btn",
    "month_label": ".ant-picker-month-btn",

    # Double chevrons page one year, single chevrons page one month
    "prev_year": ".ant-picker-header-super-prev-btn",
    "next_year": ".ant-picker-header-super-next-btn",
    "prev_month": ".ant-picker-header-prev-btn",
    "next_month": ".ant-picker-header-next-btn",

    "ok_button": ".ant-picker-ok",
}

DISABLED_CELL_CLASS = "ant-picker-cell-disabled"

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

# The filter form renders each picker id twice; the second match is the visible input
WIDGET_INDEX = 1

MAX_YEAR_STEPS = 100
# Once the year matches, the target month is at most 11 pages away
MAX_MONTH_STEPS = 11

# Interval between label re-reads while waiting for the header to re-render
RENDER_POLL_MS = 50


def month_ordinal(label: str) -> int | None:
    """Map a month header label ("Jan", "January", " jan ") to 0-11."""
    key = label.strip()[:3].title()
    if key in MONTH_LABELS:
        return MONTH_LABELS.index(key)
    return None


def paging_distance(cursor: CalendarCursor, target: date) -> tuple[int, int]:
    """Signed (years, months) still to page; negative means page backward."""
    return target.year - cursor.year, (target.month - 1) - cursor.month


def _read_year(cal: Locator) -> int:
    text = (cal.locator(SELECTORS["year_label"]).text_content() or "").strip()
    try:
        return int(text)
    except ValueError:
        raise NavigationTimeout(f"Could not read calendar year label: '{text}'") from None


def _read_month(cal: Locator) -> int:
    text = cal.locator(SELECTORS["month_label"]).text_content() or ""
    ordinal = month_ordinal(text)
    if ordinal is None:
        raise NavigationTimeout(f"Could not read calendar month label: '{text}'")
    return ordinal


def _converge(
    current: int,
    target: int,
    read: Callable[[], int],
    step_back: Callable[[], None],
    step_forward: Callable[[], None],
    wait: Callable[[], None],
    max_steps: int,
    polls: int,
    what: str,
) -> int:
    """Page toward ``target`` one step at a time; return the number of steps issued.

    Each step must move the label exactly one unit closer. A label that never
    changes (stuck widget) or jumps past the target (misread widget) raises
    NavigationTimeout instead of looping forever.
    """
    steps = 0
    while current != target:
        if steps >= max_steps:
            raise NavigationTimeout(
                f"Calendar {what} did not reach {target} within {max_steps} steps (showing {current})"
            )
        (step_back if current > target else step_forward)()
        steps += 1

        previous = current
        current = read()
        for _ in range(polls):
            if current != previous:
                break
            wait()
            current = read()

        if abs(target - current) != abs(target - previous) - 1:
            raise NavigationTimeout(
                f"Calendar {what} moved from {previous} to {current} while paging toward {target}"
            )
    return steps


def _commit_day(cal: Locator, target: date, timeout_ms: int) -> None:
    iso = target.isoformat()
    cells = cal.locator(f'td[title="{iso}"]')
    if cells.count() == 0:
        raise DateNotSelectable(f"No calendar cell for {iso}")

    cell = cells.first
    classes = cell.get_attribute("class") or ""
    if DISABLED_CELL_CLASS in classes.split():
        raise DateNotSelectable(f"Calendar cell for {iso} is disabled")

    cell.click(timeout=timeout_ms)
    cal.locator(SELECTORS["ok_button"]).first.click(timeout=timeout_ms)


def select_date(page: Page, input_selector: str, target: date, timeout_ms: int = 30000) -> int:
    """Open the picker bound to ``input_selector`` and commit ``target``.

    Returns the number of paging actions issued. When the popup already
    shows the target month no paging happens at all.

    Raises:
        NavigationTimeout: popup did not open, or paging did not converge.
        DateNotSelectable: the day cell is missing or disabled.
    """
    polls = max(1, timeout_ms // RENDER_POLL_MS)

    def wait() -> None:
        page.wait_for_timeout(RENDER_POLL_MS)

    try:
        page.locator(input_selector).nth(WIDGET_INDEX).click(force=True, timeout=timeout_ms)
        cal = page.locator(SELECTORS["picker_dropdown"])
        cal.wait_for(timeout=timeout_ms)

        cursor = CalendarCursor(year=_read_year(cal), month=_read_month(cal))
        years, months = paging_distance(cursor, target)
        logger.info(
            f"Date picker {input_selector} shows {cursor.year}-{cursor.month + 1:02d}, "
            f"target {target.isoformat()} ({years:+d} years, {months:+d} months)"
        )

        steps = 0
        if not cursor.matches(target):
            steps += _converge(
                cursor.year,
                target.year,
                read=lambda: _read_year(cal),
                step_back=lambda: cal.locator(SELECTORS["prev_year"]).click(timeout=timeout_ms),
                step_forward=lambda: cal.locator(SELECTORS["next_year"]).click(timeout=timeout_ms),
                wait=wait,
                max_steps=MAX_YEAR_STEPS,
                polls=polls,
                what="year",
            )
            cursor.year = target.year
            cursor.month = _read_month(cal)

            steps += _converge(
                cursor.month,
                target.month - 1,
                read=lambda: _read_month(cal),
                step_back=lambda: cal.locator(SELECTORS["prev_month"]).click(timeout=timeout_ms),
                step_forward=lambda: cal.locator(SELECTORS["next_month"]).click(timeout=timeout_ms),
                wait=wait,
                max_steps=MAX_MONTH_STEPS,
                polls=polls,
                what="month",
            )
            cursor.month = target.month - 1

        _commit_day(cal, target, timeout_ms)
    except PwTimeout as e:
        raise NavigationTimeout(f"Date picker {input_selector} timed out: {e}") from e

    logger.info(f"Selected {target.isoformat()} in {input_selector} after {steps} paging steps")
    return steps
