"""
Browser and element capability sets consumed by waits and dialogs.

The core never talks to a driver directly: everything goes through these
narrow protocols so page objects can plug any implementation (the
Playwright adapter in `resilient_ui.browser`, or fakes in tests).
"""

from enum import Enum
from typing import Any, List, Optional, Protocol


class ClickOutcome(Enum):
    """Result of clicking on the element which opens a dialog."""

    CLICKED = "clicked"
    SKIPPED = "skipped"
    NOT_INTERACTABLE = "not_interactable"


class Element(Protocol):
    """A live DOM node as seen by the core."""

    def is_displayed(self, recheck: bool = False) -> bool:
        """Return whether the element is visible.

        A stale element (no longer attached to the DOM) is reported as not
        displayed instead of raising.
        """

    def is_enabled(self) -> bool:
        ...

    def get_text(self, recovery: bool = False) -> str:
        ...

    def get_attribute(self, name: str) -> Optional[str]:
        ...

    def click(self) -> None:
        """Click on the element.

        Raises:
            ElementNotInteractableError: If the browser refused the click.
        """

    def get_frame(self) -> Optional[Any]:
        """Frame the element lives in, None for the top-level document."""

    def find_element(self, selector: str) -> Optional["Element"]:
        """Find a descendant element, None if there is none."""


class Browser(Protocol):
    """The single browser session shared by all page objects."""

    def find_element(self, selector: str) -> Optional[Element]:
        ...

    def find_elements(
        self, selector: str, timeout_seconds: float, visible: bool = True
    ) -> List[Element]:
        """Wait up to the timeout for at least one matching element.

        Returns all matching elements in DOM order (only displayed ones when
        `visible` is set), or an empty list if none appeared in time.
        """

    def select_frame(self, frame: Optional[Any]) -> None:
        ...

    def reset_frame(self) -> None:
        ...

    def current_frame(self) -> Optional[Any]:
        ...

    def purge_alerts(self, context: str) -> int:
        """Dismiss pending browser alerts and return how many were purged."""
