"""
Retry policy and retry decision logic.

The decision logic is kept free of I/O so the blocking `Client` and the
`AsyncClient` drive the exact same state machine and only differ in how they
send requests and sleep.

Example:
    >>> from figma_api._retry import RetryPolicy, RetryState, Finish, Wait, Fail
    >>> state = RetryState(RetryPolicy())
    >>> while state.has_attempts_left:
    ...     match state.on_outcome(executor.execute(endpoint)):
    ...         case Finish(content):
    ...             return content
    ...         case Wait(seconds):
    ...             time.sleep(seconds)
    ...             state.resume()
    ...         case Fail(error):
    ...             raise error
    >>> raise state.fail_exhausted().error
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, ClassVar

from figma_api._rate_limit import (
    RateLimitedError,
    RateLimitExceededError,
    RequestTimeoutError,
)

# =============================================================================
# Policy
# =============================================================================


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable retry configuration shared by every request of a client.

    The policy is a plain parameter bag: it is not validated here. Callers
    should pass `max_attempts >= 1` and `backoff_multiplier >= 1`
    (`RetryConfig.validate()` enforces this for configured values).

    Attributes:
        max_attempts: Total number of attempts, counting the first one.
            Timeouts and rate limits share this budget.
        initial_backoff: Seconds to wait after the first timeout.
        backoff_multiplier: Factor applied to the backoff after each timeout.
        max_acceptable_wait: Largest Retry-After (seconds) the client is willing
            to wait. Larger hints fail the call immediately.

    Example:
        >>> policy = RetryPolicy(max_attempts=5, max_acceptable_wait=600)
        >>> list(policy.backoff_delays())
        [1.0, 2.0, 4.0, 8.0]
    """

    DEFAULT: ClassVar[RetryPolicy]

    max_attempts: int = 3
    initial_backoff: float = 1.0
    backoff_multiplier: float = 2.0
    max_acceptable_wait: float = 300.0

    def backoff_delays(self) -> Iterator[float]:
        """Yield the waits used for consecutive timeout retries."""
        delay = self.initial_backoff
        for _ in range(self.max_attempts - 1):
            yield delay
            delay *= self.backoff_multiplier


RetryPolicy.DEFAULT = RetryPolicy()


# =============================================================================
# Attempt Outcomes
# =============================================================================


@dataclass(frozen=True)
class Success:
    """The attempt returned a decoded response."""

    content: Any


@dataclass(frozen=True)
class TimedOut:
    """The transport timed out before a response arrived."""


@dataclass(frozen=True)
class RateLimited:
    """The server answered HTTP 429 with the given wait hint."""

    retry_after: float


@dataclass(frozen=True)
class RateLimitExceeded:
    """The server asked for a wait larger than the client accepts."""

    retry_after: float


@dataclass(frozen=True)
class OtherError:
    """Any other failure: transport error without response, or decode error."""

    cause: Exception


AttemptOutcome = Success | TimedOut | RateLimited | RateLimitExceeded | OtherError


def unwrap_outcome(outcome: AttemptOutcome) -> Any:
    """
    Return the content of a successful outcome, or raise its error.

    Used by single-attempt requests, which never retry.

    Raises:
        RequestTimeoutError: For `TimedOut`.
        RateLimitedError: For `RateLimited`.
        RateLimitExceededError: For `RateLimitExceeded`.
        Exception: The original cause for `OtherError`.
    """
    match outcome:
        case Success(content):
            return content
        case TimedOut():
            raise RequestTimeoutError()
        case RateLimited(retry_after):
            raise RateLimitedError(retry_after)
        case RateLimitExceeded(retry_after):
            raise RateLimitExceededError(retry_after)
        case OtherError(cause):
            raise cause


# =============================================================================
# Retry Steps
# =============================================================================


@dataclass(frozen=True)
class Finish:
    """Stop and return the content to the caller."""

    content: Any


@dataclass(frozen=True)
class Wait:
    """Sleep for `seconds`, then attempt again."""

    seconds: float
    reason: AttemptOutcome


@dataclass(frozen=True)
class Fail:
    """Stop and raise `error` to the caller."""

    error: Exception


RetryStep = Finish | Wait | Fail


# =============================================================================
# Retry State Machine
# =============================================================================


class RetryStage(enum.StrEnum):
    """
    Stage of a single `request_with_retry` call.

    Attributes:
        ATTEMPTING: A request attempt is about to be (or being) sent.
        WAITING_BACKOFF: Sleeping the exponential backoff after a timeout.
        WAITING_RATE_LIMIT: Sleeping the server-supplied Retry-After.
        SUCCEEDED: Content was returned to the caller.
        FAILED_TERMINAL: An error was raised to the caller.
    """
    ATTEMPTING = "ATTEMPTING"
    WAITING_BACKOFF = "WAITING_BACKOFF"
    WAITING_RATE_LIMIT = "WAITING_RATE_LIMIT"
    SUCCEEDED = "SUCCEEDED"
    FAILED_TERMINAL = "FAILED_TERMINAL"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (RetryStage.SUCCEEDED, RetryStage.FAILED_TERMINAL)


_VALID_TRANSITIONS: dict[RetryStage, frozenset[RetryStage]] = {
    RetryStage.ATTEMPTING:         frozenset({RetryStage.WAITING_BACKOFF, RetryStage.WAITING_RATE_LIMIT, RetryStage.SUCCEEDED, RetryStage.FAILED_TERMINAL}),
    RetryStage.WAITING_BACKOFF:    frozenset({RetryStage.ATTEMPTING}),
    RetryStage.WAITING_RATE_LIMIT: frozenset({RetryStage.ATTEMPTING}),
    RetryStage.SUCCEEDED:          frozenset(),
    RetryStage.FAILED_TERMINAL:    frozenset(),
}


@dataclass
class RetryState:
    """
    Mutable state of one `request_with_retry` call.

    Created at the start of the call and discarded when it returns or raises.
    Never shared between calls.

    Attributes:
        policy: The retry policy in effect for this call.
        attempt_index: Number of attempts already consumed.
        current_backoff: Wait to use for the next timeout. Only grows.
        last_error: Last retryable outcome seen (TimedOut or RateLimited).
        stage: Current stage of the call.
    """

    policy: RetryPolicy
    attempt_index: int = 0
    current_backoff: float = field(init=False)
    last_error: AttemptOutcome | None = None
    stage: RetryStage = RetryStage.ATTEMPTING

    def __post_init__(self) -> None:
        self.current_backoff = self.policy.initial_backoff

    @property
    def has_attempts_left(self) -> bool:
        return not self.stage.is_terminal and self.attempt_index < self.policy.max_attempts

    def on_outcome(self, outcome: AttemptOutcome) -> RetryStep:
        """
        Decide what to do with the outcome of the current attempt.

        Timeouts and acceptable rate limits always produce a `Wait`, including
        on the last attempt. Once the wait is over and `resume()` was called,
        `has_attempts_left` tells the driver whether to try again or to call
        `fail_exhausted()`.

        Args:
            outcome: The outcome returned by the request executor.

        Returns:
            `Finish` with the content, `Wait` with the seconds to sleep before
            the next attempt, or `Fail` with the error to raise.
        """
        assert self.stage == RetryStage.ATTEMPTING, \
            f"🌀 Sanity check | Outcome received while in stage {self.stage}."

        match outcome:
            case Success(content):
                self._transition_to(RetryStage.SUCCEEDED)
                return Finish(content)

            case RateLimited(retry_after) if retry_after > self.policy.max_acceptable_wait:
                # Never sleep when the server asks for more than we accept
                return self._fail(RateLimitExceededError(retry_after))

            case RateLimited(retry_after):
                self._record(outcome)
                self._transition_to(RetryStage.WAITING_RATE_LIMIT)
                return Wait(seconds=retry_after, reason=outcome)

            case TimedOut():
                self._record(outcome)
                delay = self.current_backoff
                self.current_backoff *= self.policy.backoff_multiplier
                self._transition_to(RetryStage.WAITING_BACKOFF)
                return Wait(seconds=delay, reason=outcome)

            case RateLimitExceeded(retry_after):
                return self._fail(RateLimitExceededError(retry_after))

            case OtherError(cause):
                return self._fail(cause)

    def resume(self) -> None:
        """Go back to attempting once the wait is over."""
        self._transition_to(RetryStage.ATTEMPTING)

    def fail_exhausted(self) -> Fail:
        """
        Fail the call because no attempts are left.

        Called by the driver after the wait that followed the last attempt.

        Returns:
            `Fail` carrying the error of the last retryable outcome, or a
            `RequestTimeoutError` if no attempt was ever made.
        """
        match self.last_error:
            case RateLimited(retry_after):
                error: Exception = RateLimitedError(retry_after)
            case _:
                error = RequestTimeoutError()
        return self._fail(error)

    def _record(self, outcome: AttemptOutcome) -> None:
        self.last_error = outcome
        self.attempt_index += 1

    def _fail(self, error: Exception) -> Fail:
        self._transition_to(RetryStage.FAILED_TERMINAL)
        return Fail(error)

    def _transition_to(self, new_stage: RetryStage) -> None:
        allowed = _VALID_TRANSITIONS[self.stage]
        if new_stage not in allowed:
            raise RuntimeError(
                f"Invalid retry stage transition: {self.stage} -> {new_stage}. "
                f"Allowed transitions from {self.stage}: {sorted(allowed) or 'none (terminal stage)'}"
            )
        self.stage = new_stage
