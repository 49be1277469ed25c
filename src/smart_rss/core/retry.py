"""
Retry with linear backoff.

The loop is a small state machine::

    ATTEMPTING(n) -> SUCCEEDED
                  -> BACKING_OFF -> ATTEMPTING(n + 1)
                  -> EXHAUSTED

Delay computation lives on ``RetryPolicy`` and the sleeping primitive is
passed in, so tests can run the loop without waiting.
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from smart_rss.logger import get_logger

T = TypeVar("T")
logger = get_logger(__name__)


class RetryState(str, Enum):
    """States of the retry loop."""

    ATTEMPTING = "attempting"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt limit and linear backoff unit."""

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_after(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        return self.base_delay * attempt

    def next_state(self, attempt: int, succeeded: bool) -> RetryState:
        """State that follows attempt number ``attempt``."""
        if succeeded:
            return RetryState.SUCCEEDED
        if attempt >= self.max_attempts:
            return RetryState.EXHAUSTED
        return RetryState.BACKING_OFF

    def schedule(self) -> list[float]:
        """Every delay a fully failing run would wait, in order."""
        return [self.delay_after(attempt) for attempt in range(1, self.max_attempts)]


@dataclass
class RetryOutcome(Generic[T]):
    """Final state of a retry loop."""

    state: RetryState
    value: Optional[T] = None
    attempts: int = 0
    errors: list[Exception] = field(default_factory=list)
    delays: list[float] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is RetryState.SUCCEEDED

    @property
    def last_error(self) -> Optional[Exception]:
        return self.errors[-1] if self.errors else None


def run_with_retry(
    operation: Callable[[], T],
    policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "operation",
) -> RetryOutcome[T]:
    """Call ``operation`` until it succeeds or the policy is exhausted.

    Any exception raised by ``operation`` counts as a failed attempt. The
    loop itself never raises; exhaustion is reported on the outcome.

    Args:
        operation: Zero-argument callable to attempt
        policy: Attempt limit and backoff unit
        sleep: Sleeping primitive, called with the delay in seconds
        label: Name used in log messages

    Returns:
        RetryOutcome with the value or the collected errors
    """
    policy = policy or RetryPolicy()
    outcome: RetryOutcome[T] = RetryOutcome(state=RetryState.ATTEMPTING)
    state = RetryState.ATTEMPTING
    attempt = 0

    while state in (RetryState.ATTEMPTING, RetryState.BACKING_OFF):
        if state is RetryState.BACKING_OFF:
            delay = policy.delay_after(attempt)
            outcome.delays.append(delay)
            sleep(delay)

        attempt += 1
        try:
            value = operation()
        except Exception as e:
            outcome.errors.append(e)
            state = policy.next_state(attempt, succeeded=False)
            if state is RetryState.BACKING_OFF:
                logger.warning(
                    f"Attempt {attempt}/{policy.max_attempts} failed for {label}: {e}; "
                    f"retrying in {policy.delay_after(attempt):.1f}s"
                )
            continue

        outcome.value = value
        state = policy.next_state(attempt, succeeded=True)

    outcome.state = state
    outcome.attempts = attempt
    return outcome
