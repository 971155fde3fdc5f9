"""
Playwright Browser Adapter Module.

Implements the element and browser capability sets on top of an already
opened Playwright page (sync API). Launching browsers and managing
sessions is left to the caller.
"""

import logging
from collections import deque
from typing import Deque, List, Optional, Union

from playwright.sync_api import Dialog as PWDialog, ElementHandle, Error as PlaywrightError, Frame, Page

from resilient_ui.conditions import Condition
from resilient_ui.config import config
from resilient_ui.errors import ElementNotInteractableError, ScenarioFailedError
from resilient_ui.wait_strategies import Timeout

logger = logging.getLogger(__name__)

MAX_PURGED_ALERTS = 10


class PlaywrightElement:
    """
    Element facade wrapping a Playwright element handle.

    Args:
        handle: Underlying element handle.
        selector: Selector the handle was found with, used for recovery.
        frame: Frame the element was found in, None for the main frame.
        browser: Browser adapter which found the element.
    """

    def __init__(
        self,
        handle: ElementHandle,
        selector: str,
        frame: Optional[Frame],
        browser: "PlaywrightBrowser",
    ):
        self.handle = handle
        self.selector = selector
        self.frame = frame
        self.browser = browser

    def __repr__(self) -> str:
        return "<PlaywrightElement %r>" % self.selector

    def is_displayed(self, recheck: bool = False) -> bool:
        if recheck:
            self._recover()
        try:
            return self.handle.is_visible()
        except PlaywrightError as e:
            logger.debug("Element %s is stale: %s", self.selector, e)
            return False

    def is_enabled(self) -> bool:
        try:
            return self.handle.is_enabled()
        except PlaywrightError as e:
            logger.debug("Cannot check whether %s is enabled: %s", self.selector, e)
            return False

    def get_text(self, recovery: bool = False) -> str:
        try:
            return self.handle.inner_text()
        except PlaywrightError:
            if not recovery or not self._recover():
                raise
            logger.debug("Text of %s read after recovery", self.selector)
            return self.handle.inner_text()

    def get_attribute(self, name: str) -> Optional[str]:
        return self.handle.get_attribute(name)

    def click(self) -> None:
        try:
            self.handle.click(timeout=self.browser.click_timeout_ms)
        except PlaywrightError as e:
            raise ElementNotInteractableError("Cannot click on %s: %s" % (self.selector, e)) from e

    def get_frame(self) -> Optional[Frame]:
        return self.frame

    def find_element(self, selector: str) -> Optional["PlaywrightElement"]:
        handle = self.handle.query_selector(selector)
        if handle is None:
            return None
        return PlaywrightElement(handle, selector, self.frame, self.browser)

    def _recover(self) -> bool:
        scope = self.frame or self.browser.page.main_frame
        handle = scope.query_selector(self.selector)
        if handle is None:
            return False
        self.handle = handle
        return True


class PlaywrightBrowser:
    """
    Browser facade on top of a Playwright page.

    Keeps track of the selected frame the way driver based browsers do, so
    lookups are scoped to it, and queues the alerts raised by the page until
    they are purged.

    Args:
        page: Opened Playwright page.
        pause_ms: Polling interval while waiting for elements.
        click_timeout_ms: Timeout given to Playwright for each click.

    Example:
        >>> browser = PlaywrightBrowser(page)
        >>> button = browser.find_element("#open")
    """

    def __init__(self, page: Page, pause_ms: Optional[int] = None, click_timeout_ms: int = 5000):
        self.page = page
        self.pause_ms = config.pause_ms if pause_ms is None else pause_ms
        self.click_timeout_ms = click_timeout_ms
        self._frame: Optional[Frame] = None
        self._alerts: Deque[PWDialog] = deque()
        page.on("dialog", self._alerts.append)

    @property
    def scope(self) -> Frame:
        return self._frame or self.page.main_frame

    def find_element(self, selector: str) -> Optional[PlaywrightElement]:
        handle = self.scope.query_selector(selector)
        if handle is None:
            return None
        return PlaywrightElement(handle, selector, self._frame, self)

    def find_elements(
        self, selector: str, timeout_seconds: float, visible: bool = True
    ) -> List[PlaywrightElement]:
        found: List[PlaywrightElement] = []

        def lookup() -> bool:
            found[:] = [
                PlaywrightElement(handle, selector, self._frame, self)
                for handle in self.scope.query_selector_all(selector)
            ]
            if visible:
                found[:] = [element for element in found if element.is_displayed()]
            return len(found) > 0

        condition = Condition(lookup, "Elements '%s' are found" % selector)
        Timeout(condition, fail=False, pause_ms=self.pause_ms).wait_until(timeout_seconds)
        return list(found)

    def select_frame(self, frame: Union[Frame, str, None]) -> None:
        if frame is None:
            self.reset_frame()
            return
        if isinstance(frame, str):
            resolved = self.page.frame(name=frame)
            if resolved is None:
                raise ScenarioFailedError("Cannot find frame '%s'" % frame)
            frame = resolved
        logger.debug("Select frame %s", frame.name)
        self._frame = frame

    def reset_frame(self) -> None:
        self._frame = None

    def current_frame(self) -> Optional[Frame]:
        return self._frame

    def purge_alerts(self, context: str) -> int:
        """Dismiss every pending alert and return how many were purged."""
        count = 0
        while self._alerts:
            count += 1
            if count > MAX_PURGED_ALERTS:
                raise ScenarioFailedError("Too many unexpected alerts, give up!")
            alert = self._alerts.popleft()
            logger.warning("%s: purge %s alert '%s'", context, alert.type, alert.message)
            alert.dismiss()
        return count
