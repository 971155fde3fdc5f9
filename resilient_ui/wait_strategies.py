"""Timeout engine polling a condition until it flips or the duration expires."""

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional, Union

from resilient_ui.conditions import Condition, Label, as_condition
from resilient_ui.config import config
from resilient_ui.errors import WaitTimeoutError
from resilient_ui.facade import Element

logger = logging.getLogger(__name__)


class WaitDirection(Enum):
    UNTIL = "until"
    WHILE = "while"


class Timeout:
    """
    Reusable wait loop on a single condition.

    The instance only holds its configuration; the duration is given at
    each call so the same timeout can be used with different deadlines.
    Nothing survives between two calls.

    Args:
        condition: Condition to poll, or a bare predicate.
        label: Description of a bare predicate (ignored for a Condition).
        fail: Raise WaitTimeoutError on expiry instead of returning False.
        pause_ms: Sleep between two evaluations, in milliseconds.
        element: Optional element the condition is about, given to an
            element condition built without one.
        dialog: Optional dialog attached to raised errors.
        clock: Monotonic clock in seconds.
        sleep: Sleep primitive taking seconds.

    Example:
        >>> Timeout(DisplayedCondition(button)).wait_until(10)
        True
    """

    def __init__(
        self,
        condition: Union[Condition, Callable[[], bool]],
        label: Optional[Label] = None,
        fail: bool = True,
        pause_ms: Optional[int] = None,
        element: Optional[Element] = None,
        dialog: Optional[Any] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.condition = as_condition(condition, label)
        self.fail = fail
        self.pause_ms = config.pause_ms if pause_ms is None else pause_ms
        if self.pause_ms < 0:
            raise ValueError("pause_ms must be >= 0, got %d" % self.pause_ms)
        self.element = element
        if element is not None and getattr(self.condition, "element", element) is None:
            self.condition.element = element
        self.dialog = dialog
        self._clock = clock
        self._sleep = sleep

    def wait_until(self, seconds: float) -> bool:
        """Wait until the condition becomes true."""
        return self.wait(WaitDirection.UNTIL, seconds)

    def wait_while(self, seconds: float) -> bool:
        """Wait while the condition remains true."""
        return self.wait(WaitDirection.WHILE, seconds)

    def wait(self, direction: WaitDirection, seconds: float) -> bool:
        """
        Poll the condition in the given direction.

        The duration is converted to milliseconds by truncating the seconds
        to an integer first, hence 2.9 seconds gives a 2000ms deadline. Up to
        999ms of the requested time can be lost that way.

        Args:
            direction: UNTIL waits for the condition to be true, WHILE for it
                to be false.
            seconds: Maximum duration of the wait.

        Returns:
            True if the expected state was reached, False on expiry when the
            timeout does not fail.

        Raises:
            WaitTimeoutError: On expiry when the timeout fails.
        """
        while_loop = direction is WaitDirection.WHILE
        duration_ms = int(seconds) * 1000
        label = self.condition.describe()

        value = self.condition.evaluate()
        logger.debug("Condition '%s' is %s", label, value)
        if value != while_loop:
            logger.debug("No wait as the condition was already %s", value)
            return True

        start = self._clock()
        deadline = start + duration_ms / 1000
        while True:
            self._sleep(self.pause_ms / 1000)
            value = self.condition.evaluate()
            now = self._clock()
            elapsed_ms = int((now - start) * 1000)
            logger.debug("Condition '%s' is %s after %dms", label, value, elapsed_ms)
            if value != while_loop:
                logger.debug("It took %dms for the condition to become %s", elapsed_ms, value)
                return True
            if now > deadline:
                logger.debug("Condition is still %s after %dms, give up!", value, elapsed_ms)
                if self.fail:
                    self._fail(while_loop, duration_ms, elapsed_ms)
                return False

    def failure_message(self, while_loop: bool, duration_ms: int) -> str:
        return "Condition '%s' was still %s after %d seconds, give up." % (
            self.condition.describe(),
            "true" if while_loop else "false",
            duration_ms // 1000,
        )

    def _fail(self, while_loop: bool, duration_ms: int, elapsed_ms: int) -> None:
        for line in self.condition.diagnostics(while_loop):
            logger.error(line)
        raise WaitTimeoutError(
            self.failure_message(while_loop, duration_ms),
            condition=self.condition.describe(),
            elapsed_ms=elapsed_ms,
            dialog=self.dialog,
        )


def wait_until(
    condition: Union[Condition, Callable[[], bool]],
    seconds: float,
    label: Optional[Label] = None,
    fail: bool = True,
    pause_ms: Optional[int] = None,
) -> bool:
    """Wait until a condition becomes true, using a one-shot Timeout."""
    return Timeout(condition, label, fail=fail, pause_ms=pause_ms).wait_until(seconds)


def wait_while(
    condition: Union[Condition, Callable[[], bool]],
    seconds: float,
    label: Optional[Label] = None,
    fail: bool = True,
    pause_ms: Optional[int] = None,
) -> bool:
    """Wait while a condition remains true, using a one-shot Timeout."""
    return Timeout(condition, label, fail=fail, pause_ms=pause_ms).wait_while(seconds)
