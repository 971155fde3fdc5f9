"""Tests for the timeout engine."""

import logging

import pytest

from resilient_ui.conditions import Condition, TextCondition
from resilient_ui.errors import WaitTimeoutError, is_retryable
from resilient_ui.wait_strategies import Timeout, WaitDirection, wait_until, wait_while
from tests.fakes import FakeClock, FakeElement


def make_timeout(clock, condition, label="Flag is set", **kwargs):
    return Timeout(condition, label, clock=clock, sleep=clock.sleep, **kwargs)


class Counter:
    """Predicate returning scripted values, then repeating the last one."""

    def __init__(self, *values):
        self.values = list(values)
        self.calls = 0

    def __call__(self):
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


class TestFastPath:
    def test_until_already_true_does_not_sleep(self, clock):
        predicate = Counter(True)
        assert make_timeout(clock, predicate).wait_until(10) is True
        assert clock.sleeps == []
        assert predicate.calls == 1

    def test_while_already_false_does_not_sleep(self, clock):
        predicate = Counter(False)
        assert make_timeout(clock, predicate).wait_while(10) is True
        assert clock.sleeps == []


class TestPolling:
    def test_until_returns_once_condition_turns_true(self, clock):
        predicate = Counter(False, False, False, True)
        assert make_timeout(clock, predicate, pause_ms=250).wait_until(10) is True
        assert predicate.calls == 4
        assert clock.sleeps == [0.25, 0.25, 0.25]

    def test_while_returns_once_condition_turns_false(self, clock):
        predicate = Counter(True, True, False)
        assert make_timeout(clock, predicate).wait_while(10) is True
        assert predicate.calls == 3

    def test_duration_shorter_than_pause_still_evaluates_twice(self, clock):
        predicate = Counter(False)
        result = make_timeout(clock, predicate, fail=False, pause_ms=500).wait_until(0.3)
        assert result is False
        assert predicate.calls == 2

    def test_zero_duration_gets_a_second_chance(self, clock):
        predicate = Counter(False, True)
        assert make_timeout(clock, predicate, pause_ms=500).wait_until(0) is True

    def test_slow_condition_does_not_extend_deadline(self, clock):
        calls = []

        def slow():
            calls.append(clock())
            clock.advance(1.0)
            return False

        make_timeout(clock, slow, fail=False, pause_ms=100).wait_until(3)
        # one immediate evaluation, then at most one per elapsed second
        assert len(calls) <= 4
        assert clock() < 5

    def test_negative_pause_is_rejected(self, clock):
        with pytest.raises(ValueError):
            make_timeout(clock, Counter(True), pause_ms=-1)


class TestExpiry:
    def test_returns_false_when_not_failing(self, clock):
        assert make_timeout(clock, Counter(False), fail=False).wait_until(1) is False

    def test_raises_when_failing(self, clock):
        with pytest.raises(WaitTimeoutError) as exc_info:
            make_timeout(clock, Counter(False)).wait_until(2)
        error = exc_info.value
        assert str(error) == "Condition 'Flag is set' was still false after 2 seconds, give up."
        assert error.condition == "Flag is set"
        assert error.elapsed_ms >= 2000
        assert is_retryable(error)

    def test_while_failure_message_mentions_true(self, clock):
        with pytest.raises(WaitTimeoutError, match="was still true after 1 seconds"):
            make_timeout(clock, Counter(True)).wait_while(1)

    def test_seconds_are_truncated(self, clock):
        with pytest.raises(WaitTimeoutError) as exc_info:
            make_timeout(clock, Counter(False)).wait_until(2.9)
        assert 2000 <= exc_info.value.elapsed_ms < 2900
        assert "after 2 seconds" in str(exc_info.value)

    def test_dialog_is_attached_to_error(self, clock):
        dialog = object()
        with pytest.raises(WaitTimeoutError) as exc_info:
            make_timeout(clock, Counter(False), dialog=dialog).wait_until(1)
        assert exc_info.value.dialog is dialog

    def test_failure_message_can_be_overridden(self, clock):
        class VerboseTimeout(Timeout):
            def failure_message(self, while_loop, duration_ms):
                return "custom: " + super().failure_message(while_loop, duration_ms)

        timeout = VerboseTimeout(Counter(False), "Flag is set", clock=clock, sleep=clock.sleep)
        with pytest.raises(WaitTimeoutError, match="^custom: Condition 'Flag is set'"):
            timeout.wait_until(1)

    def test_text_diagnostics_are_logged(self, clock, caplog):
        element = FakeElement("title", text="Draft")
        timeout = Timeout(TextCondition("Saved", element), clock=clock, sleep=clock.sleep)
        with caplog.at_level(logging.ERROR, logger="resilient_ui.wait_strategies"):
            with pytest.raises(WaitTimeoutError, match="Element text equals 'Saved'"):
                timeout.wait_until(1)
        assert "Expected text: Saved" in caplog.text
        assert "Actual   text: Draft" in caplog.text


class TestComplementarity:
    @pytest.mark.parametrize("values", [(True,), (False,), (False, False, True), (True, False)])
    def test_until_matches_while_on_negation(self, values):
        until_clock, while_clock = FakeClock(), FakeClock()
        condition = Condition(Counter(*values), "Flag is set")
        negated = Condition(Counter(*values), "Flag is set").negate()

        until = Timeout(condition, fail=False, clock=until_clock, sleep=until_clock.sleep)
        while_ = Timeout(negated, fail=False, clock=while_clock, sleep=while_clock.sleep)

        assert until.wait(WaitDirection.UNTIL, 1) == while_.wait(WaitDirection.WHILE, 1)
        assert until_clock.sleeps == while_clock.sleeps

    def test_timeout_is_reusable_with_other_durations(self, clock):
        timeout = make_timeout(clock, Counter(False), fail=False)
        assert timeout.wait_until(1) is False
        first = clock()
        assert timeout.wait_until(3) is False
        assert clock() - first > 3


class TestHelpers:
    def test_one_shot_helpers_accept_plain_predicates(self):
        assert wait_until(lambda: True, 1, "Flag is set") is True
        assert wait_while(lambda: False, 1, "Flag is set") is True

    def test_bound_element_is_given_to_text_condition(self, clock):
        element = FakeElement("title", text="Saved")
        condition = TextCondition("Saved")
        timeout = make_timeout(clock, condition, element=element)

        assert condition.element is element
        assert timeout.wait_until(1) is True

    def test_condition_element_takes_precedence(self, clock):
        own, bound = FakeElement("own", text="Saved"), FakeElement("bound", text="Draft")
        condition = TextCondition("Saved", own)
        make_timeout(clock, condition, element=bound)
        assert condition.element is own
