import pytest

from conduit_tools.common.exceptions import HarnessError, WaitTimeoutError
from conduit_suites.ui_testing.framework.waits import (
    WaitCondition,
    WaitConfig,
    get_wait_config,
    poll_until,
    wait_for,
)


def test_returns_immediately_when_predicate_already_true(clock):
    result = wait_for(lambda: "ready", timeout=5, poll_interval=0.25, clock=clock, sleep=clock.sleep)

    assert result == "ready"
    assert clock.sleeps == []


def test_success_observed_within_one_poll_interval(clock):
    becomes_true_at = 1.1

    wait_for(lambda: clock.now >= becomes_true_at, timeout=5, poll_interval=0.25, clock=clock, sleep=clock.sleep)

    assert becomes_true_at <= clock.now <= becomes_true_at + 0.25


def test_timeout_never_overshoots_deadline(clock):
    with pytest.raises(WaitTimeoutError) as exc_info:
        wait_for(lambda: False, timeout=1.0, poll_interval=0.375, clock=clock, sleep=clock.sleep)

    # Final sleep is clipped to the time left
    assert clock.sleeps == [0.375, 0.375, 0.25]
    assert clock.now == 1.0
    assert exc_info.value.elapsed <= 1.0 + 0.375
    assert exc_info.value.last_state is False


def test_timeout_error_is_a_builtin_timeout(clock):
    with pytest.raises(TimeoutError) as exc_info:
        wait_for(lambda: None, timeout=0.5, poll_interval=0.1, description="never", clock=clock, sleep=clock.sleep)

    assert isinstance(exc_info.value, HarnessError)
    assert "never" in str(exc_info.value)


def test_zero_timeout_evaluates_once(clock):
    calls = []

    with pytest.raises(WaitTimeoutError):
        wait_for(lambda: calls.append(1), timeout=0, poll_interval=0.1, clock=clock, sleep=clock.sleep)

    assert calls == [1]
    assert clock.sleeps == []


def test_predicate_exceptions_are_recorded_and_polling_continues(clock):
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ValueError("element detached")
        return "done"

    assert wait_for(flaky, timeout=5, poll_interval=0.1, clock=clock, sleep=clock.sleep) == "done"
    assert len(attempts) == 3


def test_last_error_reported_on_timeout(clock):
    def broken():
        raise KeyError("token")

    with pytest.raises(WaitTimeoutError) as exc_info:
        wait_for(broken, timeout=0.3, poll_interval=0.1, clock=clock, sleep=clock.sleep)

    assert exc_info.value.last_error.startswith("KeyError")


def test_poll_until_returns_state(clock):
    counts = iter([0, 0, 2])

    def check():
        count = next(counts)
        return count > 1, count

    state = poll_until(check, timeout=5, poll_interval=0.1, clock=clock, sleep=clock.sleep)

    assert state == 2


def test_poll_until_uses_scenario_preset(clock):
    with pytest.raises(WaitTimeoutError) as exc_info:
        poll_until(lambda: (False, "pending"), scenario="storage", clock=clock, sleep=clock.sleep)

    assert exc_info.value.timeout == get_wait_config("storage").timeout
    preset = get_wait_config("storage")
    assert all(0 < s <= preset.poll_interval for s in clock.sleeps)
    assert sum(clock.sleeps) == pytest.approx(preset.timeout)
    assert exc_info.value.last_state == "pending"


def test_unknown_scenario_falls_back_to_default():
    assert get_wait_config("no-such-scenario") == get_wait_config("default")


@pytest.mark.parametrize("timeout, poll_interval", [(-1, 0.1), (1, 0), (1, -0.5)])
def test_wait_config_rejects_invalid_values(timeout, poll_interval):
    with pytest.raises(ValueError):
        WaitConfig(timeout=timeout, poll_interval=poll_interval)


def test_wait_condition(clock):
    condition = WaitCondition(lambda: clock.now >= 0.5, timeout=2.0, poll_interval=0.25, description="half a second")

    assert condition.wait(clock=clock, sleep=clock.sleep) is True
    assert clock.now == pytest.approx(0.5)

    with pytest.raises(ValueError):
        WaitCondition(lambda: True, timeout=1.0, poll_interval=0)
