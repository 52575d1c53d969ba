"""Pick values in the filter panel's dropdowns and radio groups.

Ant Design selects hide the real <input> inside a styled wrapper, so a
visible label is resolved to its control in three hops: the label's
``for`` attribute names the input id, and the clickable element is the
``ant-select-selector`` div of the input's ``ant-select`` ancestor. All
portal markup knowledge for these controls lives in this module.
"""

from __future__ import annotations

import logging
import re

from playwright.sync_api import Locator, Page, TimeoutError as PwTimeout

from oss_tickets.errors import NavigationTimeout, OptionNotFound

logger = logging.getLogger(__name__)

SELECTORS = {
    "option": ".ant-select-item-option-content",
    "status_radios": "#HIS_FLAG label",
}

SELECTOR_FROM_INPUT = (
    'xpath=ancestor::div[contains(@class,"ant-select")]'
    '/div[contains(@class,"ant-select-selector")]'
)

# The option list only renders on mousedown; a plain click is not enough
ACTIVATE_JS = """el => {
    el.dispatchEvent(new MouseEvent("mousedown", { bubbles: true }));
    el.dispatchEvent(new MouseEvent("click", { bubbles: true }));
}"""

# Interval between re-reads of a dropdown list that has no match yet
OPTION_POLL_MS = 50


def match_option(texts: list[str], wanted: str) -> int | None:
    """Index of the option whose text equals ``wanted`` exactly (case-sensitive)."""
    for index, text in enumerate(texts):
        if text == wanted:
            return index
    return None


def match_radio(texts: list[str], wanted: str) -> int | None:
    """Index of the radio label equal to ``wanted`` ignoring case (whole string only)."""
    key = wanted.casefold()
    for index, text in enumerate(texts):
        if text.casefold() == key:
            return index
    return None


def resolve_control(page: Page, label_text: str, timeout_ms: int = 30000) -> Locator:
    """Return the clickable select element bound to the label ``label_text``."""
    label = page.locator("label").filter(
        has_text=re.compile(rf"^\s*{re.escape(label_text)}\s*$")
    ).first
    try:
        control_id = label.get_attribute("for", timeout=timeout_ms)
    except PwTimeout as e:
        raise NavigationTimeout(f"Label '{label_text}' did not appear: {e}") from e

    if not control_id:
        raise OptionNotFound(f"Label '{label_text}' is not bound to a control")

    return page.locator(f"#{control_id}").locator(SELECTOR_FROM_INPUT)


def select_option(page: Page, label_text: str, option_text: str, timeout_ms: int = 30000) -> None:
    """Open the dropdown labelled ``label_text`` and pick ``option_text``.

    Raises:
        NavigationTimeout: the label or the option list never rendered.
        OptionNotFound: the list rendered but had no exact match within
            ``timeout_ms``.
    """
    control = resolve_control(page, label_text, timeout_ms)
    logger.info(f"Opening '{label_text}' dropdown...")
    try:
        control.evaluate(ACTIVATE_JS)
        options = page.locator(SELECTORS["option"])
        options.first.wait_for(timeout=timeout_ms)
    except PwTimeout as e:
        raise NavigationTimeout(f"Options for '{label_text}' did not render: {e}") from e

    # The list can still be filling in after the first option shows up
    texts = options.all_text_contents()
    index = match_option(texts, option_text)
    for _ in range(timeout_ms // OPTION_POLL_MS):
        if index is not None:
            break
        page.wait_for_timeout(OPTION_POLL_MS)
        texts = options.all_text_contents()
        index = match_option(texts, option_text)

    if index is None:
        raise OptionNotFound(f"'{option_text}' is not an option of '{label_text}' (available: {texts})")

    try:
        options.nth(index).click(timeout=timeout_ms)
    except PwTimeout as e:
        raise NavigationTimeout(f"Could not click option '{option_text}': {e}") from e
    logger.info(f"Selected '{option_text}' in '{label_text}'")


def select_radio(
    page: Page,
    radio_label: str,
    group_selector: str = SELECTORS["status_radios"],
    timeout_ms: int = 30000,
) -> str:
    """Click the radio in ``group_selector`` whose label matches ``radio_label``.

    The radios are always rendered, so there is nothing to open first.
    Returns the label text as shown by the portal.
    """
    labels = page.locator(group_selector)
    try:
        labels.first.wait_for(timeout=timeout_ms)
    except PwTimeout as e:
        raise NavigationTimeout(f"Radio group {group_selector} did not render: {e}") from e

    texts = labels.all_text_contents()
    index = match_radio(texts, radio_label)
    if index is None:
        raise OptionNotFound(f"No radio labelled '{radio_label}' in {group_selector} (available: {texts})")

    try:
        labels.nth(index).click(timeout=timeout_ms)
    except PwTimeout as e:
        raise NavigationTimeout(f"Could not click radio '{radio_label}': {e}") from e
    logger.info(f"Selected radio '{texts[index]}'")
    return texts[index]
