# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Bounded, strictly sequential polling until an observed value converges."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from tenacity import RetryCallState, RetryError, Retrying, retry_if_result

from spread_check import logger
from spread_check.errors import ClusterAPIError, ConvergenceTimeout
from spread_check.models import ResourceCollection
from spread_check.predicates import Predicate, filter_collection


class PollState(str, Enum):
    """Lifecycle of a single poller."""

    PENDING = "Pending"
    POLLING = "Polling"
    CONVERGED = "Converged"
    TIMED_OUT = "TimedOut"
    ABORTED = "Aborted"


@dataclass(frozen=True)
class PollResult:
    """Diagnostics of a converged poll.

    Attributes:
        state: Final poller state.
        observed: Value returned by the last evaluation.
        expected: Expected value, or the condition's description.
        elapsed: Seconds between the first evaluation and convergence.
        attempts: Number of evaluations performed.
    """

    state: PollState
    observed: Any
    expected: Any
    elapsed: float
    attempts: int


def _stop_at_deadline(clock: Callable[[], float], deadline: float) -> Callable[[RetryCallState], bool]:
    """Build a tenacity stop condition bound to *clock* instead of wall time."""

    def _stop(retry_state: RetryCallState) -> bool:
        return clock() >= deadline

    return _stop


def _wait_within_deadline(
    clock: Callable[[], float], deadline: float, interval: float,
) -> Callable[[RetryCallState], float]:
    """Build a tenacity wait of *interval* seconds, cut short at *deadline*.

    The last evaluation then happens exactly at the deadline, never after it.
    """

    def _wait(retry_state: RetryCallState) -> float:
        return max(0.0, min(interval, deadline - clock()))

    return _wait


class ConvergencePoller:
    """Re-evaluate a zero-argument function until its result matches.

    The first evaluation runs immediately. A matching result returns at once;
    otherwise the poller sleeps ``interval`` seconds and evaluates again, until
    ``timeout`` seconds have elapsed since the first evaluation. The last sleep
    is shortened so the final evaluation falls on the deadline. An exception
    raised by the evaluation (typically ``ClusterAPIError``) aborts the poll
    instead of counting as an unconverged attempt.

    Args:
        evaluate: Function returning the observed value. It must fetch fresh
            state on every call.
        expected: Value the observation must equal.
        condition: Optional predicate over the observation, used instead of
            equality with *expected*.
        interval: Seconds to sleep between evaluations.
        timeout: Total seconds allowed before reporting a timeout.
        description: Human readable name used in logs and errors.
        clock: Monotonic clock, injectable for tests.
        sleep: Sleep function, injectable for tests.
    """

    def __init__(
        self,
        evaluate: Callable[[], Any],
        expected: Any = None,
        *,
        condition: Callable[[Any], bool] | None = None,
        interval: float,
        timeout: float,
        description: str = "condition",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        if timeout < 0:
            raise ValueError("timeout must not be negative")
        self._evaluate = evaluate
        self.expected = expected
        self._condition = condition
        self.interval = interval
        self.timeout = timeout
        self.description = description
        self._clock = clock
        self._sleep = sleep
        self.state = PollState.PENDING
        self.attempts = 0
        self.last_observed: Any = None

    def _matches(self, observed: Any) -> bool:
        if self._condition is not None:
            return bool(self._condition(observed))
        return observed == self.expected

    def _attempt(self) -> Any:
        self.attempts += 1
        self.last_observed = self._evaluate()
        return self.last_observed

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.debug(
            "%s not converged (observed=%r, expected=%r), attempt %d, next in %.1fs",
            self.description,
            self.last_observed,
            self.expected,
            retry_state.attempt_number,
            retry_state.next_action.sleep if retry_state.next_action else self.interval,
        )

    def poll(self) -> PollResult:
        """Run the poll to completion.

        Returns:
            Diagnostics of the converged poll.

        Raises:
            ConvergenceTimeout: If the deadline passed without a match.
            ClusterAPIError: If the evaluation could not observe cluster state.
            RuntimeError: If this poller has already run.
        """
        if self.state is not PollState.PENDING:
            raise RuntimeError(f"poller for {self.description} already ran (state={self.state.value})")

        self.state = PollState.POLLING
        started = self._clock()
        deadline = started + self.timeout
        retrying = Retrying(
            stop=_stop_at_deadline(self._clock, deadline),
            wait=_wait_within_deadline(self._clock, deadline, self.interval),
            retry=retry_if_result(lambda observed: not self._matches(observed)),
            sleep=self._sleep,
            before_sleep=self._log_retry,
        )

        try:
            observed = retrying(self._attempt)
        except RetryError as err:
            self.state = PollState.TIMED_OUT
            elapsed = self._clock() - started
            logger.warning("%s timed out after %.1fs: last observed %r", self.description, elapsed, self.last_observed)
            raise ConvergenceTimeout(
                self.description,
                expected=self.expected,
                observed=self.last_observed,
                elapsed=elapsed,
                attempts=self.attempts,
            ) from err
        except ClusterAPIError:
            self.state = PollState.ABORTED
            logger.error("%s aborted: cluster state could not be observed", self.description)
            raise
        except Exception:
            self.state = PollState.ABORTED
            logger.exception("%s aborted: evaluation raised", self.description)
            raise

        self.state = PollState.CONVERGED
        elapsed = self._clock() - started
        logger.info("%s converged to %r after %.1fs (%d attempts)", self.description, observed, elapsed, self.attempts)
        return PollResult(
            state=self.state,
            observed=observed,
            expected=self.expected,
            elapsed=elapsed,
            attempts=self.attempts,
        )


def count_of(
    list_fn: Callable[[], ResourceCollection],
    *predicates: Predicate,
) -> Callable[[], int]:
    """Build an evaluation function counting freshly listed matching records.

    Args:
        list_fn: Zero-argument function performing one list call.
        *predicates: Predicates every counted record must satisfy.

    Returns:
        Function that lists, filters and returns the count on every call.
    """

    def _evaluate() -> int:
        return len(filter_collection(list_fn(), *predicates))

    return _evaluate
