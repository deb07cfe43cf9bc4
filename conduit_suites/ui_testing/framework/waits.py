# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Bounded polling used to synchronize with the asynchronously rendered UI and
# the eventually consistent backend.
#
# Guarantees:
#   - The predicate is evaluated at least once
#   - Success is observed within one poll interval of the predicate turning true
#   - Sleeps never overshoot the deadline: a wait returns or raises within
#     timeout + one predicate evaluation
#   - Exceptions inside the predicate are recorded as last_error and polling
#     continues
#
# Usage:
#   wait_for(lambda: page.is_following(), description="follow button flipped")
#   state = poll_until(check, scenario="favorite", description="favorited")
#
# ================================================================================

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar

import allure
from loguru import logger

from conduit_tools.common.exceptions import WaitTimeoutError


T = TypeVar("T")

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class WaitConfig:
    """
    Attributes:
        timeout: Total time budget in seconds
        poll_interval: Delay between predicate evaluations
    """
    timeout: float = 5.0
    poll_interval: float = 0.25

    def __post_init__(self):
        if self.timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {self.timeout}")
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {self.poll_interval}")


# Pre-configured waits for common UI synchronization points
WAIT_SCENARIOS: Dict[str, WaitConfig] = {
    "default": WaitConfig(),
    # Follow / favorite round trip: click -> API -> re-render
    "follow": WaitConfig(timeout=10.0, poll_interval=0.25),
    "favorite": WaitConfig(timeout=10.0, poll_interval=0.25),
    # Comment list refresh after submit / delete
    "comment": WaitConfig(timeout=10.0, poll_interval=0.25),
    # Client-side route changes
    "navigation": WaitConfig(timeout=15.0, poll_interval=0.25),
    # localStorage writes after login / logout
    "storage": WaitConfig(timeout=5.0, poll_interval=0.1),
    # Backend read-after-write
    "api_consistency": WaitConfig(timeout=10.0, poll_interval=0.5),
}


def get_wait_config(scenario: str) -> WaitConfig:
    """Return the preset for a scenario, or the default preset."""
    return WAIT_SCENARIOS.get(scenario, WAIT_SCENARIOS["default"])


def _resolve(
    scenario: str,
    timeout: Optional[float],
    poll_interval: Optional[float],
) -> WaitConfig:
    preset = get_wait_config(scenario)
    return WaitConfig(
        timeout=preset.timeout if timeout is None else timeout,
        poll_interval=preset.poll_interval if poll_interval is None else poll_interval,
    )


def poll_until(
    check_fn: Callable[[], Tuple[bool, T]],
    scenario: str = "default",
    description: str = "condition",
    timeout: Optional[float] = None,
    poll_interval: Optional[float] = None,
    clock: Clock = time.monotonic,
    sleep: Sleeper = time.sleep,
) -> T:
    """
    Poll `check_fn` until it reports success.

    Args:
        check_fn: Returns (success, state); state is returned on success and
                  reported on timeout
        scenario: WAIT_SCENARIOS preset supplying defaults
        description: What is being awaited, for logs and errors
        timeout: Overrides the preset timeout
        poll_interval: Overrides the preset poll interval
        clock: Monotonic clock (injectable for tests)
        sleep: Sleep function (injectable for tests)

    Returns:
        The state from the successful evaluation

    Raises:
        WaitTimeoutError: With last_state and last_error, when the deadline passes
    """
    config = _resolve(scenario, timeout, poll_interval)
    start = clock()
    deadline = start + config.timeout
    attempt = 0
    last_state: Any = None
    last_error: Optional[str] = None

    while True:
        attempt += 1
        try:
            success, state = check_fn()
            last_state = state
            if success:
                logger.debug(f"Wait satisfied after {attempt} attempt(s) ({clock() - start:.2f}s): {description}")
                return state
        except Exception as e:
            last_error = f"{type(e).__name__}: {e}"
            logger.debug(f"Attempt {attempt} raised {last_error}")

        now = clock()
        remaining = deadline - now
        if remaining <= 0:
            error = WaitTimeoutError(description, config.timeout, now - start, last_state, last_error)
            logger.warning(str(error))
            raise error
        sleep(min(config.poll_interval, remaining))


@allure.step("Wait for: {description}")
def wait_for(
    predicate: Callable[[], T],
    timeout: Optional[float] = None,
    poll_interval: Optional[float] = None,
    description: str = "condition",
    scenario: str = "default",
    clock: Clock = time.monotonic,
    sleep: Sleeper = time.sleep,
) -> T:
    """
    Wait until `predicate()` returns a truthy value and return that value.

    Raises:
        WaitTimeoutError: If the predicate never returns truthy in time
    """
    def check() -> Tuple[bool, T]:
        result = predicate()
        return bool(result), result

    return poll_until(
        check,
        scenario=scenario,
        description=description,
        timeout=timeout,
        poll_interval=poll_interval,
        clock=clock,
        sleep=sleep,
    )


@dataclass(frozen=True)
class WaitCondition:
    """
    A named, bounded predicate over UI state.

    >>> WaitCondition(lambda: page.is_following(), 10.0, 0.25, "following").wait()
    True
    """
    predicate: Callable[[], Any]
    timeout: float = 5.0
    poll_interval: float = 0.25
    description: str = "condition"

    def __post_init__(self):
        WaitConfig(self.timeout, self.poll_interval)

    def wait(self, clock: Clock = time.monotonic, sleep: Sleeper = time.sleep) -> Any:
        return wait_for(
            self.predicate,
            timeout=self.timeout,
            poll_interval=self.poll_interval,
            description=self.description,
            clock=clock,
            sleep=sleep,
        )


__all__ = [
    "WAIT_SCENARIOS",
    "WaitCondition",
    "WaitConfig",
    "get_wait_config",
    "poll_until",
    "wait_for",
]
