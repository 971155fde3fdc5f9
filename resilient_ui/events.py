"""Events emitted while dialogs are opened and closed."""

import logging
from enum import Enum
from typing import Any, Dict, List, Protocol, Tuple

logger = logging.getLogger(__name__)


class DialogEvent(Enum):
    ATTEMPT = "attempt"
    CLICK = "click"
    NOT_FOUND = "not_found"
    RETRY = "retry"
    NOT_INTERACTABLE = "not_interactable"
    LOCATOR_FALLBACK = "locator_fallback"
    STALE = "stale"
    AMBIGUITY_DETECTED = "ambiguity_detected"
    RESOLVED = "resolved"
    ALERTS_PURGED = "alerts_purged"
    OPENED = "opened"
    CLOSED = "closed"


_WARNING_EVENTS = {
    DialogEvent.RETRY,
    DialogEvent.NOT_INTERACTABLE,
    DialogEvent.LOCATOR_FALLBACK,
    DialogEvent.AMBIGUITY_DETECTED,
    DialogEvent.ALERTS_PURGED,
}


class DialogObserver(Protocol):
    def notify(self, event: DialogEvent, dialog: Any, **details: Any) -> None:
        ...


class LoggingObserver:
    """Default observer writing every event to the module logger."""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def notify(self, event: DialogEvent, dialog: Any, **details: Any) -> None:
        level = logging.WARNING if event in _WARNING_EVENTS else logging.DEBUG
        self.log.log(
            level,
            "[%s] %s %s",
            event.value,
            dialog,
            " ".join("%s=%s" % item for item in sorted(details.items())),
            extra={"dialog_event": event.value, "details": details},
        )


class RecordingObserver(LoggingObserver):
    """Observer keeping every event in memory, in addition to logging it."""

    def __init__(self, log: logging.Logger = logger):
        super().__init__(log)
        self.events: List[Tuple[DialogEvent, Dict[str, Any]]] = []

    def notify(self, event: DialogEvent, dialog: Any, **details: Any) -> None:
        self.events.append((event, details))
        super().notify(event, dialog, **details)

    def kinds(self) -> List[DialogEvent]:
        return [event for event, _ in self.events]
