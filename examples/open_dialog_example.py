"""
Open Dialog Example.

Demonstrates how to use the resilient dialog protocol on a real page:
open a modal by clicking on its trigger, read its content and close it.
"""

import logging

from playwright.sync_api import sync_playwright

from resilient_ui import Comparison, ConfirmationDialog, TextCondition, Timeout, config, setup_logging
from resilient_ui.browser import PlaywrightBrowser

setup_logging(config)
logger = logging.getLogger(__name__)

DEMO_URL = "https://demoqa.com/modal-dialogs"


def open_dialog_example():
    """
    Example: open the small modal of a demo website.

    Demonstrates:
    - Wrapping a Playwright page into the browser facade
    - Opening a dialog with missed click tolerance
    - Waiting on the dialog text
    - Closing the dialog
    """
    with sync_playwright() as playwright:
        pw_browser = playwright.chromium.launch(headless=True)
        page = pw_browser.new_page()
        page.goto(DEMO_URL)

        browser = PlaywrightBrowser(page)
        dialog = ConfirmationDialog(browser, "div.modal-content", validate_text="Close")

        trigger = browser.find_element("#showSmallModal")
        element = dialog.open(trigger)

        body = element.find_element("div.modal-body")
        Timeout(TextCondition("small modal", body, Comparison.CONTAINS)).wait_until(config.short_timeout)
        logger.info("Dialog text: %s", body.get_text())

        dialog.close()
        pw_browser.close()


if __name__ == "__main__":
    open_dialog_example()
