"""Retry scheduling for API requests using tenacity.

One logical operation is executed as a sequence of attempts. Every attempt is
classified as success, retryable or fatal; retryable outcomes are retried
after a doubling wait with random jitter, bounded by the remaining attempts
and by a single overall deadline.
"""

from __future__ import annotations

import asyncio
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from tenacity import AsyncRetrying, RetryCallState, Retrying, retry_if_result, stop_after_attempt
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from form3.domain.config.retry import RetryConfig
from form3.domain.errors import (
    DeadlineExceeded,
    FatalOperationFailure,
    OperationCancelled,
    RetryBudgetExhausted,
    TransportFailure,
)
from form3.domain.models.request import AttemptOutcome, OutcomeKind, RequestSpec
from form3.infrastructure.http_client import AsyncAttemptRunner, AttemptRunner

logger = logging.getLogger(__name__)

# Called before every retry sleep with (wait, jitter, remaining attempts)
RetryObserver = Callable[[float, float, int], None]


def classify(response: Any) -> AttemptOutcome:
    """Classify a response by its status code."""
    status_code = response.status_code
    # Don't retry on client errors. Too many requests can still be retried.
    if 400 <= status_code < 500 and status_code != 429:
        return AttemptOutcome(OutcomeKind.FATAL, response=response)
    if status_code >= 500 or status_code == 429:
        return AttemptOutcome(OutcomeKind.RETRYABLE, response=response)
    return AttemptOutcome(OutcomeKind.SUCCESS, response=response)


def classify_transport_failure(error: TransportFailure) -> AttemptOutcome:
    """A request that could not be dispatched is always retryable."""
    return AttemptOutcome(OutcomeKind.RETRYABLE, error=error)


def log_retry(wait: float, jitter: float, remaining_attempts: int) -> None:
    """Observer reporting every retry decision to the debug log."""
    logger.debug(
        f"Http request failed, retrying in: {wait:.3f}s "
        f"jitter added: {jitter:.3f}s remaining attempts: {remaining_attempts}"
    )


class Deadline:
    """Overall time budget measured on a monotonic clock."""

    def __init__(self, budget: float, clock: Callable[[], float] = time.monotonic):
        self.budget = budget
        self._clock = clock
        self.started = clock()

    def elapsed(self) -> float:
        return self._clock() - self.started

    def remaining(self) -> float:
        return max(0.0, self.budget - self.elapsed())

    def expired(self) -> bool:
        return self.remaining() <= 0


@dataclass
class RetryState:
    """Mutable bookkeeping owned by a single execute call"""

    remaining_attempts: int
    wait: float
    deadline: Deadline
    jitter: float = 0.0
    attempts: int = 0
    last_outcome: Optional[AttemptOutcome] = None


class wait_doubling_with_jitter(wait_base):
    """Double the previous wait and add jitter, never waiting past the deadline.

    The jitter is drawn from ``[0, wait * jitter_fraction)`` before doubling and
    the deadline clamp is applied after the jitter is added.
    """

    def __init__(self, state: RetryState, jitter_fraction: float, rng: Any):
        self.state = state
        self.jitter_fraction = jitter_fraction
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        state = self.state
        jitter = self.rng.random() * state.wait * self.jitter_fraction
        wait = state.wait * 2 + jitter

        remaining = state.deadline.remaining()
        if wait > remaining:
            wait = remaining

        state.wait = wait
        state.jitter = jitter
        return wait


class stop_at_deadline(stop_base):
    """Stop once the overall deadline has elapsed."""

    def __init__(self, deadline: Deadline):
        self.deadline = deadline

    def __call__(self, retry_state: RetryCallState) -> bool:
        return self.deadline.expired()


class BaseRetryScheduler:
    """Shared policy handling for the blocking and asyncio schedulers"""

    def __init__(
        self,
        policy: Optional[RetryConfig] = None,
        observer: Optional[RetryObserver] = None,
        rng: Any = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize scheduler

        Args:
            policy: Default retry policy (used when execute gets none)
            observer: Default observer notified before every retry sleep
            rng: Random source with a ``random()`` method, seedable for tests
            clock: Monotonic clock used for the overall deadline
        """
        self.policy = policy or RetryConfig()
        self.observer = observer
        self.rng = rng if rng is not None else random.Random()
        self.clock = clock

    def _new_state(self, policy: RetryConfig) -> RetryState:
        return RetryState(
            remaining_attempts=policy.max_attempts,
            wait=policy.initial_delay,
            deadline=Deadline(policy.timeout, clock=self.clock),
        )

    def _retrying_kwargs(
        self,
        policy: RetryConfig,
        state: RetryState,
        observer: Optional[RetryObserver],
    ) -> Dict[str, Any]:
        return dict(
            stop=stop_after_attempt(max(policy.max_attempts, 0) + 1) | stop_at_deadline(state.deadline),
            wait=wait_doubling_with_jitter(state, policy.jitter, self.rng),
            retry=retry_if_result(lambda outcome: outcome.is_retryable),
            before_sleep=self._before_sleep(state, observer),
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

    def _before_sleep(
        self, state: RetryState, observer: Optional[RetryObserver]
    ) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            wait = retry_state.next_action.sleep
            logger.warning(
                f"Request failed ({state.last_outcome.describe()}) on attempt {state.attempts}, "
                f"retrying in {wait:.3f}s"
            )
            if observer is not None:
                try:
                    observer(wait, state.jitter, state.remaining_attempts)
                except Exception as e:
                    logger.warning(f"Retry observer failed: {e}")
            state.remaining_attempts -= 1

        return before_sleep

    def _check_deadline(self, state: RetryState) -> float:
        remaining = state.deadline.remaining()
        if remaining <= 0:
            raise DeadlineExceeded(
                f"overall timeout of {state.deadline.budget}s exceeded after {state.attempts} attempts",
                outcome=state.last_outcome,
                attempts=state.attempts,
            )
        return remaining

    def _record(self, state: RetryState, outcome: AttemptOutcome) -> AttemptOutcome:
        state.last_outcome = outcome
        logger.debug(f"Attempt {state.attempts} outcome: {outcome.kind.value}")
        return outcome

    def _resolve(self, outcome: AttemptOutcome, state: RetryState, policy: RetryConfig) -> Any:
        """Turn the final outcome into a response or an error."""
        if outcome.kind is OutcomeKind.SUCCESS:
            return outcome.response

        if outcome.kind is OutcomeKind.FATAL:
            raise FatalOperationFailure(outcome.status_code, outcome.body, outcome.response)

        # Retries disabled: the first outcome goes back to the caller unchanged
        if policy.max_attempts <= 0:
            if outcome.error is not None:
                raise outcome.error
            return outcome.response

        if state.deadline.expired():
            logger.error(f"Request failed, overall timeout of {policy.timeout}s exceeded")
            raise DeadlineExceeded(
                f"overall timeout of {policy.timeout}s exceeded after {state.attempts} attempts: "
                f"{outcome.describe()}",
                outcome=outcome,
                attempts=state.attempts,
            )

        logger.error(f"Request failed after {state.attempts} attempts: {outcome.describe()}")
        raise RetryBudgetExhausted(
            f"request failed after {state.attempts} attempts: {outcome.describe()}",
            outcome=outcome,
            attempts=state.attempts,
        )


class RetryScheduler(BaseRetryScheduler):
    """Executes a request with retries, blocking the calling thread between attempts"""

    def __init__(
        self,
        runner: AttemptRunner,
        policy: Optional[RetryConfig] = None,
        observer: Optional[RetryObserver] = None,
        rng: Any = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(policy=policy, observer=observer, rng=rng, clock=clock)
        self.runner = runner
        self.sleep = sleep

    def execute(
        self,
        spec: RequestSpec,
        policy: Optional[RetryConfig] = None,
        observer: Optional[RetryObserver] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """Perform ``spec`` until it succeeds, fails fatally or runs out of budget.

        Args:
            spec: Request to perform
            policy: Retry policy for this call (defaults to the scheduler's)
            observer: Observer for this call (defaults to the scheduler's)
            cancel: Event that aborts a pending retry wait when set. It is checked
                before each attempt but cannot interrupt a request already in
                flight; that request is bounded by its transport timeout, the
                remaining overall budget

        Returns:
            The successful response

        Raises:
            FatalOperationFailure: On a client error response
            RetryBudgetExhausted: When every retry was used
            DeadlineExceeded: When the overall timeout elapsed
            TransportFailure: When retries are disabled and no response was obtained
            MalformedRequest: When the request could not be built
            OperationCancelled: When ``cancel`` was set
        """
        policy = policy or self.policy
        observer = observer or self.observer
        state = self._new_state(policy)

        retrying = Retrying(
            sleep=self._sleeper(cancel),
            **self._retrying_kwargs(policy, state, observer),
        )
        outcome = retrying(self._attempt, spec, state, cancel)
        return self._resolve(outcome, state, policy)

    def _attempt(
        self, spec: RequestSpec, state: RetryState, cancel: Optional[threading.Event]
    ) -> AttemptOutcome:
        if cancel is not None and cancel.is_set():
            raise OperationCancelled("operation cancelled before the request was sent")
        remaining = self._check_deadline(state)

        state.attempts += 1
        try:
            response = self.runner.run(spec, timeout=remaining)
        except TransportFailure as e:
            return self._record(state, classify_transport_failure(e))
        return self._record(state, classify(response))

    def _sleeper(self, cancel: Optional[threading.Event]) -> Callable[[float], None]:
        if cancel is None:
            return self.sleep

        def sleep(seconds: float) -> None:
            if cancel.wait(seconds):
                raise OperationCancelled("operation cancelled while waiting to retry")

        return sleep


class AsyncRetryScheduler(BaseRetryScheduler):
    """Executes a request with retries, suspending the task between attempts

    Cancelling the task aborts the pending sleep or the in-flight attempt.
    """

    def __init__(
        self,
        runner: AsyncAttemptRunner,
        policy: Optional[RetryConfig] = None,
        observer: Optional[RetryObserver] = None,
        rng: Any = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = asyncio.sleep,
    ):
        super().__init__(policy=policy, observer=observer, rng=rng, clock=clock)
        self.runner = runner
        self.sleep = sleep

    async def execute(
        self,
        spec: RequestSpec,
        policy: Optional[RetryConfig] = None,
        observer: Optional[RetryObserver] = None,
    ) -> Any:
        policy = policy or self.policy
        observer = observer or self.observer
        state = self._new_state(policy)

        retrying = AsyncRetrying(
            sleep=self.sleep,
            **self._retrying_kwargs(policy, state, observer),
        )
        outcome = await retrying(self._attempt, spec, state)
        return self._resolve(outcome, state, policy)

    async def _attempt(self, spec: RequestSpec, state: RetryState) -> AttemptOutcome:
        remaining = self._check_deadline(state)

        state.attempts += 1
        try:
            response = await self.runner.run(spec, timeout=remaining)
        except TransportFailure as e:
            return self._record(state, classify_transport_failure(e))
        return self._record(state, classify(response))
