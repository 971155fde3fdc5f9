"""
Dialog Acquisition Module.

Opens modal UI by clicking on a trigger element and binds the dialog to
its live DOM node. Browser automation being flaky, the protocol tolerates
a missed first click, disambiguates between zero, one or several opened
dialogs and always restores the frame context it changed.
"""

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterator, List, Optional

from resilient_ui.conditions import Condition, DisplayedCondition, EnabledCondition
from resilient_ui.config import TimeoutConfig, config as default_config
from resilient_ui.errors import (
    AmbiguousDialogCountError,
    ElementNotInteractableError,
    MissingImplementationError,
    NotEnabledError,
    ScenarioFailedError,
    WaitTimeoutError,
)
from resilient_ui.events import DialogEvent, DialogObserver, LoggingObserver
from resilient_ui.facade import Browser, ClickOutcome, Element
from resilient_ui.wait_strategies import Timeout

logger = logging.getLogger(__name__)

GENERIC_DIALOG_SELECTOR = "div[role='dialog']"


class DialogState(Enum):
    CLOSED = "closed"
    OPENING = "opening"
    AMBIGUOUS_RESOLUTION = "ambiguous_resolution"
    OPEN = "open"
    CLOSING = "closing"


class Dialog:
    """
    Modal window opened by clicking on a trigger element.

    A dialog instance must be used by a single caller thread at a time:
    its bound element is plain mutable state and is not protected against
    concurrent access.

    Args:
        browser: Browser facade of the current session.
        locator: Selector matching the dialog root element.
        frame: Optional frame the dialog lives in.
        observer: Receives the events emitted while opening and closing.
        config: Timeouts to use, the global configuration by default.
        purge_alerts: Purge browser alerts after opening. Defaults to the
            configuration value.
        clock: Monotonic clock in seconds.
        sleep: Sleep primitive taking seconds.

    Example:
        >>> dialog = ConfirmationDialog(browser, "div.modal")
        >>> dialog.open(browser.find_element("#delete"))
        >>> dialog.close()
    """

    def __init__(
        self,
        browser: Browser,
        locator: str,
        frame: Optional[Any] = None,
        observer: Optional[DialogObserver] = None,
        config: Optional[TimeoutConfig] = None,
        purge_alerts: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.browser = browser
        self.locator = locator
        self.frame = frame
        self.observer = observer or LoggingObserver()
        self.config = config or default_config
        self.purge_alerts = self.config.purge_alerts if purge_alerts is None else purge_alerts
        self.state = DialogState.CLOSED
        self.opening_element: Optional[Element] = None
        self._element: Optional[Element] = None
        self._previous_frame: Optional[Any] = None
        self._frame_saved = False
        self._clock = clock
        self._sleep = sleep

    def __repr__(self) -> str:
        return "<%s locator=%r state=%s>" % (type(self).__name__, self.locator, self.state.value)

    @property
    def element(self) -> Optional[Element]:
        """Dialog root element, None until the dialog has been opened or found."""
        return self._element

    # Hooks

    def close_button_locator(self, validate: bool) -> Optional[str]:
        """Selector, relative to the dialog element, of the validate or cancel button."""
        raise MissingImplementationError("%s must define close_button_locator" % type(self).__name__, dialog=self)

    def handle_confirmation_popup(self) -> None:
        """Called right after the trigger click, to handle any confirmation popup."""

    def wait_for_loading_end(self) -> None:
        """Called once the dialog is bound, to wait for any extra loading."""

    def short_timeout(self) -> int:
        return self.config.short_timeout

    def open_timeout(self) -> int:
        return self.short_timeout()

    def close_timeout(self) -> int:
        return self.config.close_dialog_timeout

    # Opening

    def open(self, trigger: Optional[Element] = None) -> Element:
        """
        Open the dialog by clicking on the given element.

        Without trigger the dialog is expected to be already opened and is
        only looked up.

        Returns:
            The dialog root element.

        Raises:
            AmbiguousDialogCountError: If dialogs were already opened before
                the click, or if too many are opened after it.
            NotEnabledError: If the trigger never turned enabled.
            WaitTimeoutError: If no dialog could be found after the clicks.
        """
        if trigger is None:
            return self.opened()
        self._frame_saved = False
        self._enter_dialog_frame()
        return self._open(trigger, purge_retry=True)

    def _open(self, trigger: Element, purge_retry: bool) -> Element:
        self.opening_element = trigger
        self.state = DialogState.OPENING
        self._bind(None)
        try:
            element = self._acquire_after_clicks(trigger)
        except Exception:
            self.state = DialogState.CLOSED
            raise

        self.wait_for_loading_end()

        if self.purge_alerts:
            purged = self.browser.purge_alerts("Open dialog %s" % self.locator)
            if purged > 0:
                self._notify(DialogEvent.ALERTS_PURGED, count=purged)
                if not element.is_displayed(recheck=False):
                    self._bind(None)
                    if not purge_retry:
                        self.state = DialogState.CLOSED
                        raise WaitTimeoutError(
                            "Dialog %s vanished again while purging alerts" % self,
                            condition="Dialog is opened",
                            dialog=self,
                        )
                    logger.warning("The dialog was closed while purging alerts, try to open it again...")
                    return self._open(trigger, purge_retry=False)

        self.state = DialogState.OPEN
        self._notify(DialogEvent.OPENED)
        return element

    def _acquire_after_clicks(self, trigger: Element) -> Element:
        already_opened = self.get_opened_elements(0)
        if already_opened:
            raise AmbiguousDialogCountError(
                "There are %d dialogs already opened before having clicked on opening element."
                % len(already_opened),
                count=len(already_opened),
                dialog=self,
            )

        self._notify(DialogEvent.ATTEMPT, trigger=trigger)
        self._click_trigger(trigger, attempt=0)
        start = self._clock()

        found = self._acquire()
        if found is not None:
            self._bind(found)
            return found

        self._notify(DialogEvent.RETRY, trigger=trigger, reason="previous click did not open the dialog")
        self._click_trigger(trigger, attempt=1)

        found = self._acquire()
        if found is None:
            fallback = self.browser.find_element(GENERIC_DIALOG_SELECTOR)
            if fallback is None:
                raise WaitTimeoutError(
                    "Failing to open the dialog %s" % self,
                    condition="Dialog is opened",
                    elapsed_ms=self._elapsed_ms(start),
                    dialog=self,
                )
            logger.warning(
                "Workaround applied when trying to open dialog %s: although searched opened "
                "dialog was not found, an opened dialog has been found using standard css "
                "selector \"%s\". Assume this is the correct one which was not found due to "
                "an invalid locator \"%s\". Execution continues but the locator must be fixed!",
                type(self).__name__,
                GENERIC_DIALOG_SELECTOR,
                self.locator,
            )
            self._notify(DialogEvent.LOCATOR_FALLBACK, selector=GENERIC_DIALOG_SELECTOR)
            self._bind(fallback)
            return fallback

        self._bind(found)
        return self._resolve_ambiguity(found, start)

    def _resolve_ambiguity(self, found: Element, start: float) -> Element:
        """
        Check whether the second click replaced or duplicated the dialog found.

        The time already spent since the first click is truncated to whole
        seconds before the short timeout is added to it.
        """
        self.state = DialogState.AMBIGUOUS_RESOLUTION
        timeout = int(self._clock() - start) + self.short_timeout()
        logger.debug("Wait %ds to check whether the second click opened another dialog", timeout)

        went_stale = self._timeout(DisplayedCondition(found), fail=False).wait_while(timeout)
        if went_stale:
            self._notify(DialogEvent.STALE, timeout=timeout)
            self._bind(None)
            found = self._acquire()
            if found is None:
                raise WaitTimeoutError(
                    "Failing to open the dialog %s" % self,
                    condition="Dialog is opened",
                    elapsed_ms=self._elapsed_ms(start),
                    dialog=self,
                )
            self._bind(found)
            self._notify(DialogEvent.RESOLVED, kept="replacement")
            return found

        opened = self.get_opened_elements(0)
        count = len(opened)
        if count == 1:
            self._bind(opened[0])
            self._notify(DialogEvent.RESOLVED, kept="single")
            return opened[0]
        if count != 2:
            raise AmbiguousDialogCountError(
                "There are %d dialogs opened after having clicked twice on opening element." % count,
                count=count,
                dialog=self,
            )

        # The first one in DOM order is assumed to be the spurious one
        self._notify(DialogEvent.AMBIGUITY_DETECTED, count=count)
        duplicate, kept = opened
        button_locator = self.close_button_locator(False)
        if button_locator is None:
            raise ScenarioFailedError("Several dialogs are opened and they cannot be cancelled.", dialog=self)
        button = duplicate.find_element(button_locator)
        if button is None:
            raise WaitTimeoutError(
                "Cannot find element %s to close duplicated dialog" % button_locator,
                condition="Close button is found",
                dialog=self,
            )
        logger.debug("Close dialog %s by clicking on %s button", duplicate, button_locator)
        button.click()
        self._bind(kept)
        self._notify(DialogEvent.RESOLVED, kept="last")
        self._sleep(1)
        return kept

    def _click_trigger(self, trigger: Element, attempt: int) -> ClickOutcome:
        """Click on the trigger, the second attempt tolerates a refused click."""
        if attempt > 0 and not trigger.is_displayed(recheck=False):
            logger.debug("Element is no longer displayed, the dialog might have been already opened")
            return ClickOutcome.SKIPPED

        with self.frame_scope(trigger):
            if attempt == 0:
                enabled = self._timeout(EnabledCondition(trigger), fail=False).wait_until(self.open_timeout())
                if not enabled:
                    raise NotEnabledError(
                        "Element %s which opens the dialog never turned enabled" % trigger, dialog=self
                    )

            self._notify(DialogEvent.CLICK, trigger=trigger, attempt=attempt)
            try:
                trigger.click()
            except ElementNotInteractableError as e:
                if attempt == 0:
                    raise
                self._notify(DialogEvent.NOT_INTERACTABLE, error=e)
                logger.warning("Might be due because the dialog finally opened, we'll check that later...")
                return ClickOutcome.NOT_INTERACTABLE

            self.handle_confirmation_popup()
        return ClickOutcome.CLICKED

    @contextmanager
    def frame_scope(self, element: Element) -> Iterator[None]:
        """Select the element frame for the duration of the block, then restore the previous one."""
        element_frame = element.get_frame()
        previous = self.browser.current_frame()
        switched = element_frame != previous
        if switched:
            self.browser.reset_frame()
            if element_frame is not None:
                self.browser.select_frame(element_frame)
        try:
            yield
        finally:
            if switched:
                self._restore_frame(previous)

    # Lookup

    def get_opened_elements(self, seconds: float) -> List[Element]:
        """Currently displayed elements matching the dialog locator, in DOM order."""
        return self.browser.find_elements(self.locator, seconds, visible=True)

    def opened(self) -> Element:
        """
        Return the already opened dialog element without clicking anything.

        Raises:
            WaitTimeoutError: If no dialog is found within the open timeout.
        """
        self._enter_dialog_frame()
        self._ensure_element(rebind=True)
        self.state = DialogState.OPEN
        self.wait_for_loading_end()
        return self._element

    def opened_before_timeout(self, seconds: float, fail: bool = True) -> Optional[Element]:
        if self.is_opened_before_timeout(seconds):
            return self.opened()
        if fail:
            raise WaitTimeoutError(
                "Cannot find any dialog with corresponding locator: %s" % self.locator,
                condition="Dialog is opened",
                dialog=self,
            )
        return None

    def is_opened(self) -> bool:
        return self.is_opened_before_timeout(1)

    def is_opened_before_timeout(self, seconds: float) -> bool:
        return len(self.get_opened_elements(seconds)) > 0

    def is_closeable(self) -> bool:
        element = self._element or self._acquire(0)
        if element is None:
            return False
        button = element.find_element(self.close_button_locator(True))
        return button is not None and button.is_enabled()

    # Closing

    def close(self, validate: bool = True) -> None:
        """
        Close the dialog by clicking on its validate or cancel button.

        Raises:
            WaitTimeoutError: If the dialog cannot be found or does not vanish.
            NotEnabledError: If the close button never turned enabled.
        """
        self._ensure_element()
        self.state = DialogState.CLOSING
        try:
            self.close_action(validate)
            self._timeout(DisplayedCondition(self._element), fail=True).wait_while(self.close_timeout())
        except Exception:
            self.state = DialogState.OPEN
            raise
        self._leave_dialog_frame()
        self._bind(None)
        self.state = DialogState.CLOSED
        self._notify(DialogEvent.CLOSED, validate=validate)

    def cancel(self) -> None:
        self.close(False)

    def cancel_all(self) -> None:
        """Cancel every opened dialog matching the locator."""
        locator = self.close_button_locator(False)
        for dialog_element in self.get_opened_elements(1):
            button = dialog_element.find_element(locator)
            if button is None:
                raise ScenarioFailedError(
                    "Cannot close dialog '%s' as button '%s' was not found." % (self.locator, locator),
                    dialog=self,
                )
            button.click()
        self._leave_dialog_frame()
        self._bind(None)
        self.state = DialogState.CLOSED

    def close_action(self, validate: bool) -> None:
        try:
            self.click_button(self.close_button_locator(validate), 1)
        except NotEnabledError as e:
            e.set_dialog(self)
            raise

    def click_button(self, locator: str, timeout: Optional[int] = None) -> Element:
        """Click on a dialog button once it is enabled."""
        button = self._element.find_element(locator)
        if button is None:
            raise WaitTimeoutError("Cannot find element %s" % locator, condition="Button is found", dialog=self)
        seconds = self.short_timeout() if timeout is None else timeout
        if not self._timeout(EnabledCondition(button), fail=False).wait_until(seconds):
            raise NotEnabledError("Button %s never turned enabled!" % locator, dialog=self)
        button.click()
        return button

    def closed_before_timeout(self, seconds: float) -> None:
        if self.is_opened_before_timeout(self.open_timeout()):
            self.wait_while_displayed(seconds)

    def close_if_opened_before_timeout(self, seconds: float) -> None:
        if self.is_opened_before_timeout(seconds):
            self.opened()
            self.close()

    def wait_while_displayed(self, seconds: float) -> None:
        """
        Wait for the dialog to vanish.

        A bound element which is no longer displayed is only replaced when
        another matching dialog is currently opened, otherwise the dialog is
        considered gone.
        """
        if self._element is None:
            self._ensure_element()
        elif not self._element.is_displayed(recheck=False):
            replacement = self._acquire(0)
            if replacement is None:
                return
            self._notify(DialogEvent.STALE, stale=self._element)
            self._bind(replacement)
        self._timeout(DisplayedCondition(self._element), fail=True).wait_while(seconds)

    # Internals

    def _acquire(self, seconds: Optional[float] = None) -> Optional[Element]:
        """Look for the single opened dialog element, None when there is none."""
        wait = self.open_timeout() if seconds is None else seconds
        opened = self.get_opened_elements(wait)
        count = len(opened)
        if count == 1:
            return opened[0]
        if count == 0:
            self._notify(DialogEvent.NOT_FOUND, timeout=wait)
            return None
        raise AmbiguousDialogCountError(
            "%d dialogs are opened at the same time." % count, count=count, dialog=self
        )

    def _ensure_element(self, rebind: bool = False) -> None:
        """Bind the live dialog element, re-acquiring it when the bound one went stale."""
        if self._element is not None and not rebind:
            if self._element.is_displayed(recheck=False):
                return
            self._notify(DialogEvent.STALE, stale=self._element)
            self._bind(None)
        start = self._clock()
        found = self._acquire()
        if found is None:
            raise WaitTimeoutError(
                "Cannot find any dialog with corresponding locator: %s" % self.locator,
                condition="Dialog is opened",
                elapsed_ms=self._elapsed_ms(start),
                dialog=self,
            )
        self._bind(found)

    def _bind(self, element: Optional[Element]) -> None:
        self._element = element

    def _enter_dialog_frame(self) -> None:
        current = self.browser.current_frame()
        # Only the frame selected before the first entry is restored on close
        if not self._frame_saved:
            self._previous_frame = current
            self._frame_saved = True
        if self.frame is not None and self.frame != current:
            self.browser.select_frame(self.frame)

    def _leave_dialog_frame(self) -> None:
        if self._frame_saved:
            self._restore_frame(self._previous_frame)
            self._frame_saved = False

    def _restore_frame(self, frame: Optional[Any]) -> None:
        if self.browser.current_frame() == frame:
            return
        self.browser.reset_frame()
        if frame is not None:
            self.browser.select_frame(frame)

    def _timeout(self, condition: Condition, fail: bool) -> Timeout:
        return Timeout(
            condition,
            fail=fail,
            pause_ms=self.config.pause_ms,
            dialog=self,
            clock=self._clock,
            sleep=self._sleep,
        )

    def _elapsed_ms(self, start: float) -> int:
        return int((self._clock() - start) * 1000)

    def _notify(self, event: DialogEvent, **details: Any) -> None:
        self.observer.notify(event, self, **details)


class ConfirmationDialog(Dialog):
    """
    Dialog closed by clicking on buttons identified by their label.

    Args:
        browser: Browser facade of the current session.
        locator: Selector matching the dialog root element.
        validate_text: Label of the button validating the dialog.
        cancel_text: Label of the button cancelling the dialog.
    """

    def __init__(
        self,
        browser: Browser,
        locator: str,
        validate_text: str = "OK",
        cancel_text: str = "Cancel",
        **kwargs: Any,
    ):
        super().__init__(browser, locator, **kwargs)
        self.validate_text = validate_text
        self.cancel_text = cancel_text

    def close_button_locator(self, validate: bool) -> str:
        text = self.validate_text if validate else self.cancel_text
        return "xpath=.//button[normalize-space(text())='%s']" % text
