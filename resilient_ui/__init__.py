"""
Resilient UI.

Condition polling and dialog acquisition for browser UI tests, tolerant
to missed clicks, duplicated dialogs and late rendering.
"""

from resilient_ui.conditions import (
    AttributeContainsCondition,
    AttributeEnabledCondition,
    Comparison,
    Condition,
    DisplayedCondition,
    EnabledCondition,
    TextCondition,
)
from resilient_ui.config import TimeoutConfig, config, setup_logging
from resilient_ui.dialog import ConfirmationDialog, Dialog, DialogState
from resilient_ui.errors import (
    AmbiguousDialogCountError,
    ElementNotInteractableError,
    ErrorKind,
    MissingImplementationError,
    NotEnabledError,
    RetryableError,
    ScenarioFailedError,
    WaitTimeoutError,
    classify_error,
    is_retryable,
)
from resilient_ui.events import DialogEvent, LoggingObserver, RecordingObserver
from resilient_ui.facade import ClickOutcome
from resilient_ui.wait_strategies import Timeout, WaitDirection, wait_until, wait_while

__version__ = "1.0.0"

__all__ = [
    "AmbiguousDialogCountError",
    "AttributeContainsCondition",
    "AttributeEnabledCondition",
    "ClickOutcome",
    "Comparison",
    "Condition",
    "ConfirmationDialog",
    "Dialog",
    "DialogEvent",
    "DialogState",
    "DisplayedCondition",
    "ElementNotInteractableError",
    "EnabledCondition",
    "ErrorKind",
    "LoggingObserver",
    "MissingImplementationError",
    "NotEnabledError",
    "RecordingObserver",
    "RetryableError",
    "ScenarioFailedError",
    "TextCondition",
    "Timeout",
    "TimeoutConfig",
    "WaitDirection",
    "WaitTimeoutError",
    "classify_error",
    "config",
    "is_retryable",
    "setup_logging",
    "wait_until",
    "wait_while",
]
