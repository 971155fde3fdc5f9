"""In-memory element and browser facades driven by a fake clock."""

from typing import Callable, Dict, List, Optional, Tuple

from resilient_ui.errors import ElementNotInteractableError


class FakeClock:
    """Monotonic clock which only moves when something sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []
        self._scheduled: List[Tuple[float, Callable[[], None]]] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [item for item in self._scheduled if item[0] <= self.now]
        self._scheduled = [item for item in self._scheduled if item[0] > self.now]
        for _, action in due:
            action()

    def at(self, delay: float, action: Callable[[], None]) -> None:
        """Run the action once the clock moved by the given delay."""
        self._scheduled.append((self.now + delay, action))


class FakeElement:
    def __init__(
        self,
        name: str,
        displayed: bool = True,
        enabled: bool = True,
        text: str = "",
        attributes: Optional[Dict[str, str]] = None,
        frame: Optional[str] = None,
        on_click: Optional[Callable[["FakeElement"], None]] = None,
    ):
        self.name = name
        self.displayed = displayed
        self.enabled = enabled
        self.text = text
        self.attributes = attributes or {}
        self.frame = frame
        self.on_click = on_click
        self.children: Dict[str, "FakeElement"] = {}
        self.click_errors: List[Optional[Exception]] = []
        self.clicks = 0
        self.text_reads: List[bool] = []

    def __repr__(self) -> str:
        return "<FakeElement %s>" % self.name

    def is_displayed(self, recheck: bool = False) -> bool:
        return self.displayed

    def is_enabled(self) -> bool:
        return self.enabled

    def get_text(self, recovery: bool = False) -> str:
        self.text_reads.append(recovery)
        return self.text

    def get_attribute(self, name: str) -> Optional[str]:
        return self.attributes.get(name)

    def click(self) -> None:
        self.clicks += 1
        if self.on_click is not None:
            self.on_click(self)
        if self.click_errors:
            error = self.click_errors.pop(0)
            if error is not None:
                raise error

    def get_frame(self) -> Optional[str]:
        return self.frame

    def find_element(self, selector: str) -> Optional["FakeElement"]:
        return self.children.get(selector)


def not_interactable() -> ElementNotInteractableError:
    return ElementNotInteractableError("element not interactable")


class FakeBrowser:
    """
    Browser whose DOM is a mapping of selectors to elements.

    Element lookups which find nothing consume their whole timeout on the
    fake clock, as a real browser would.
    """

    def __init__(self, clock: Optional[FakeClock] = None):
        self.clock = clock
        self.dom: Dict[str, List[FakeElement]] = {}
        self.frame: Optional[str] = None
        self.frame_calls: List[Tuple[str, Optional[str]]] = []
        self.pending_alerts = 0
        self.on_purge: Optional[Callable[[], None]] = None
        self.lookups: List[Tuple[str, float]] = []

    def add(self, selector: str, *elements: FakeElement) -> None:
        self.dom.setdefault(selector, []).extend(elements)

    def remove(self, selector: str, element: FakeElement) -> None:
        self.dom[selector].remove(element)

    def find_element(self, selector: str) -> Optional[FakeElement]:
        elements = self.dom.get(selector) or []
        return elements[0] if elements else None

    def find_elements(self, selector: str, timeout_seconds: float, visible: bool = True) -> List[FakeElement]:
        self.lookups.append((selector, timeout_seconds))
        found = [e for e in self.dom.get(selector, []) if e.displayed or not visible]
        if not found and self.clock is not None and timeout_seconds > 0:
            self.clock.advance(timeout_seconds)
            found = [e for e in self.dom.get(selector, []) if e.displayed or not visible]
        return found

    def select_frame(self, frame: Optional[str]) -> None:
        self.frame_calls.append(("select", frame))
        self.frame = frame

    def reset_frame(self) -> None:
        self.frame_calls.append(("reset", None))
        self.frame = None

    def current_frame(self) -> Optional[str]:
        return self.frame

    def purge_alerts(self, context: str) -> int:
        count = self.pending_alerts
        self.pending_alerts = 0
        if count and self.on_purge is not None:
            self.on_purge()
        return count
