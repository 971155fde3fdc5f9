"""
Error Taxonomy Module.

Failure signals raised by the timeout engine and the dialog protocol,
plus the classification used by an enclosing retry layer to decide
whether a failed operation may be attempted again.
"""

import logging
from enum import Enum
from typing import Optional, Any

logger = logging.getLogger(__name__)


class ErrorKind(Enum):
    RETRYABLE = "retryable"
    FATAL = "fatal"


class ScenarioFailedError(Exception):
    """
    Base class for all scenario failures.

    Args:
        message: Human-readable failure description.
        dialog: Optional dialog which was being handled when the error occurred.
    """

    def __init__(self, message: str, dialog: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.dialog = dialog
        logger.debug("%s: %s", type(self).__name__, message)

    def cancel(self) -> None:
        """Cancel the dialog attached to this error, if any."""
        if self.dialog is not None:
            self.dialog.cancel()


class RetryableError(ScenarioFailedError):
    """Failure that may disappear if the whole operation is attempted again."""

    pass


class WaitTimeoutError(RetryableError):
    """
    Raised when a condition was not reached within the allowed duration.

    Args:
        message: Failure description.
        condition: Label of the condition which was waited for.
        elapsed_ms: Time actually spent waiting, in milliseconds.
        dialog: Optional dialog back-reference.
    """

    def __init__(
        self,
        message: str,
        condition: Optional[str] = None,
        elapsed_ms: Optional[int] = None,
        dialog: Optional[Any] = None,
    ):
        super().__init__(message, dialog)
        self.condition = condition
        self.elapsed_ms = elapsed_ms


class NotEnabledError(RetryableError):
    """Raised when an action was attempted on a control which never turned enabled."""

    def set_dialog(self, dialog: Any) -> None:
        self.dialog = dialog


class AmbiguousDialogCountError(ScenarioFailedError):
    """
    Raised when an unexpected number of dialogs are visible at the same time.

    This points to a product or page defect rather than a transient flakiness,
    hence it is never retried.
    """

    def __init__(self, message: str, count: int, dialog: Optional[Any] = None):
        super().__init__(message, dialog)
        self.count = count


class MissingImplementationError(ScenarioFailedError):
    """Raised when a hook is used without the piece it relies on having been provided."""

    pass


class ElementNotInteractableError(Exception):
    """Raised by an element facade when the browser refused a click."""

    pass


def classify_error(e: Exception) -> ErrorKind:
    """
    Classify an exception for the enclosing retry layer.

    Only retryable scenario failures are worth a new attempt, anything
    else (ambiguous dialogs, implementation errors, unexpected exceptions)
    must propagate.
    """
    if isinstance(e, RetryableError):
        return ErrorKind.RETRYABLE
    return ErrorKind.FATAL


def is_retryable(e: Exception) -> bool:
    return classify_error(e) is ErrorKind.RETRYABLE
