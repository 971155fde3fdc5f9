"""
Wait Conditions Module.

Re-evaluatable boolean predicates with a human-readable label, used as
targets of the timeout engine. Specializations only provide how the
condition is evaluated and how it is described; the polling loop itself
lives in `resilient_ui.wait_strategies`.
"""

import json
import logging
import re
from enum import Enum
from typing import Callable, List, Optional, Union

from resilient_ui.errors import MissingImplementationError, ScenarioFailedError
from resilient_ui.facade import Element

logger = logging.getLogger(__name__)

Label = Union[str, Callable[[], str]]


class Condition:
    """
    A predicate which can be evaluated any number of times.

    Args:
        predicate: Callable returning the current condition value.
        label: Text (or callable producing it) describing the condition.

    Example:
        >>> cond = Condition(lambda: page_loaded, "Page is loaded")
        >>> cond.evaluate()
    """

    def __init__(self, predicate: Callable[[], bool], label: Label):
        self._predicate = predicate
        self._label = label

    def evaluate(self) -> bool:
        return bool(self._predicate())

    def describe(self) -> str:
        if callable(self._label):
            return self._label()
        return self._label

    def diagnostics(self, while_loop: bool) -> List[str]:
        """Extra lines worth logging when a wait on this condition gives up."""
        return []

    def negate(self) -> "Condition":
        return Condition(lambda: not self.evaluate(), lambda: "not (" + self.describe() + ")")

    def __repr__(self) -> str:
        return "<%s %r>" % (type(self).__name__, self.describe())


def as_condition(condition: Union[Condition, Callable[[], bool]], label: Optional[Label] = None) -> Condition:
    """Wrap a bare predicate into a Condition, leaving Conditions untouched."""
    if isinstance(condition, Condition):
        return condition
    if label is None:
        label = getattr(condition, "__name__", "anonymous condition")
    return Condition(condition, label)


def _require(element: Optional[Element], what: str) -> Element:
    if element is None:
        raise MissingImplementationError(
            "Cannot check %s without having set an element in the timeout." % what
        )
    return element


class DisplayedCondition(Condition):
    """Element is displayed."""

    def __init__(self, element: Element):
        self.element = element
        super().__init__(self._is_displayed, "Element is displayed")

    def _is_displayed(self) -> bool:
        return _require(self.element, "display").is_displayed(recheck=False)


class EnabledCondition(Condition):
    """Element is enabled."""

    def __init__(self, element: Element):
        self.element = element
        super().__init__(self._is_enabled, "Element is enabled")

    def _is_enabled(self) -> bool:
        return _require(self.element, "enablement").is_enabled()


class Comparison(Enum):
    """Supported comparisons between the element text and the expected one."""

    EQUALS = "equals"
    STARTS_WITH = "starts with"
    IS_START_OF = "is start of"
    ENDS_WITH = "ends with"
    IS_END_OF = "is end of"
    CONTAINS = "contains"
    REGEX = "matches regular expression"
    JSON_EQUALS = "equals json"


class TextCondition(Condition):
    """
    Element text compared against an expected text.

    Args:
        expected: Text the element text is compared to.
        element: Element whose text is read. Mandatory at evaluation time.
        comparison: How the two texts are compared.
        recovery: Ask the facade to recover the element while reading its text.
    """

    def __init__(
        self,
        expected: str = "",
        element: Optional[Element] = None,
        comparison: Comparison = Comparison.EQUALS,
        recovery: bool = False,
    ):
        self.expected = expected
        self.element = element
        self.comparison = comparison
        self.recovery = recovery
        self.current_text: Optional[str] = None
        super().__init__(self._matches, self._label_text)

    def get_text(self) -> str:
        return _require(self.element, "text").get_text(recovery=self.recovery)

    def _matches(self) -> bool:
        text = self.get_text()
        self.current_text = text
        expected = self.expected
        if self.comparison is Comparison.EQUALS:
            return text == expected
        if self.comparison is Comparison.STARTS_WITH:
            return text.startswith(expected)
        if self.comparison is Comparison.IS_START_OF:
            return expected.startswith(text)
        if self.comparison is Comparison.ENDS_WITH:
            return text.endswith(expected)
        if self.comparison is Comparison.IS_END_OF:
            return expected.endswith(text)
        if self.comparison is Comparison.CONTAINS:
            return expected in text
        if self.comparison is Comparison.REGEX:
            return re.fullmatch(expected, text) is not None
        try:
            return json.loads(text) == json.loads(expected)
        except json.JSONDecodeError as e:
            raise ScenarioFailedError("Cannot compare texts as json: %s" % e) from e

    def _label_text(self) -> str:
        if not self.expected:
            return "Element has no text"
        return "Element text %s '%s'" % (self.comparison.value, self.expected)

    def diagnostics(self, while_loop: bool) -> List[str]:
        if while_loop:
            return []
        return [
            "Timeout occurred before expected text matches:",
            "\t- Expected text: %s" % self.expected,
            "\t- Actual   text: %s" % self.current_text,
        ]


class AttributeContainsCondition(Condition):
    """
    Element attribute contains a text.

    When `contains` is None the condition is that the attribute is absent.
    """

    def __init__(self, element: Element, name: str, contains: Optional[str]):
        self.element = element
        self.name = name
        self.contains = contains
        self.attribute_value: Optional[str] = None
        super().__init__(self._contains, self._label_text)

    def _contains(self) -> bool:
        self.attribute_value = _require(self.element, "attribute").get_attribute(self.name)
        if self.contains is None:
            return self.attribute_value is None
        return self.attribute_value is not None and self.contains in self.attribute_value

    def _label_text(self) -> str:
        if self.contains is None:
            return "Attribute '%s' is null" % self.name
        return "Attribute '%s' contains '%s'" % (self.name, self.contains)


class AttributeEnabledCondition(AttributeContainsCondition):
    """Element has no 'disabled' attribute."""

    def __init__(self, element: Element):
        super().__init__(element, "disabled", None)
