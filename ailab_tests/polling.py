"""
Poll-with-deadline primitives.

Every wait in the workflow is expressed as a predicate that is re-evaluated
on a fixed interval schedule until it matches or the deadline elapses. The
schedule mirrors Playwright's ``expect.poll``: intervals are consumed in
order and the last one repeats.
"""

import logging
import time
from typing import Any, Callable, Optional, Sequence

from ailab_tests.errors import ConditionTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_INTERVALS = (0.1, 0.25, 0.5, 1.0)
DEFAULT_TIMEOUT = 5.0

_UNSET = object()


def await_condition(
    fn: Callable[[], Any],
    matcher: Callable[[Any], bool],
    description: str,
    timeout: float = DEFAULT_TIMEOUT,
    intervals: Sequence[float] = DEFAULT_INTERVALS,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Any:
    """
    Evaluate ``fn`` until ``matcher`` accepts its value or the deadline passes.

    Exceptions raised by ``fn`` count as "not yet" and are kept for the
    timeout message.

    Args:
        fn: Zero-argument callable producing the observed value
        matcher: Predicate over the observed value
        description: Human readable expectation, used in the error message
        timeout: Deadline in seconds
        intervals: Sleep schedule between attempts, last value repeats
        sleep: Sleep function, injectable for tests
        clock: Monotonic clock, injectable for tests

    Returns:
        The first observed value accepted by ``matcher``

    Raises:
        ConditionTimeoutError: If no value matched before the deadline
    """
    if not intervals:
        raise ValueError("intervals must contain at least one value")

    deadline = clock() + timeout
    last_value: Any = _UNSET
    last_error: Optional[BaseException] = None
    attempt = 0

    while True:
        try:
            value = fn()
        except Exception as e:
            last_error = e
            logger.debug(f"Poll for {description} raised {type(e).__name__}: {e}")
        else:
            last_value = value
            last_error = None
            if matcher(value):
                return value

        interval = intervals[min(attempt, len(intervals) - 1)]
        attempt += 1
        remaining = deadline - clock()
        if remaining <= 0:
            break
        sleep(min(interval, remaining))

    raise ConditionTimeoutError(
        description,
        timeout,
        last_value=None if last_value is _UNSET else last_value,
        last_error=last_error,
    )


class Poller:
    """Fluent wrapper around ``await_condition``.

    Usage:
        poll(lambda: page.app_exists(name), timeout=10).to_be_truthy()
    """

    def __init__(self, fn: Callable[[], Any], timeout: float = DEFAULT_TIMEOUT,
                 intervals: Sequence[float] = DEFAULT_INTERVALS, message: Optional[str] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.fn = fn
        self.timeout = timeout
        self.intervals = tuple(intervals)
        self.message = message
        self._sleep = sleep
        self._clock = clock

    def _wait(self, matcher: Callable[[Any], bool], expectation: str) -> Any:
        description = f"{self.message}: {expectation}" if self.message else expectation
        return await_condition(
            self.fn,
            matcher,
            description,
            timeout=self.timeout,
            intervals=self.intervals,
            sleep=self._sleep,
            clock=self._clock,
        )

    def to_be(self, expected: Any) -> Any:
        return self._wait(lambda value: value == expected, f"value to be {expected!r}")

    def to_be_truthy(self) -> Any:
        return self._wait(bool, "value to be truthy")

    def to_be_falsy(self) -> Any:
        return self._wait(lambda value: not value, "value to be falsy")

    def to_contain(self, expected: str) -> Any:
        return self._wait(
            lambda value: value is not None and expected in value,
            f"value to contain {expected!r}",
        )


def poll(fn: Callable[[], Any], timeout: float = DEFAULT_TIMEOUT,
         intervals: Sequence[float] = DEFAULT_INTERVALS, message: Optional[str] = None,
         **kwargs) -> Poller:
    return Poller(fn, timeout=timeout, intervals=intervals, message=message, **kwargs)


def to_pass(
    block: Callable[[], Any],
    timeout: float = DEFAULT_TIMEOUT,
    intervals: Sequence[float] = DEFAULT_INTERVALS,
    description: Optional[str] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Any:
    """Retry ``block`` until it returns without raising.

    Returns:
        Whatever the first successful call of ``block`` returned
    """
    outcome = {}

    def attempt():
        outcome['value'] = block()
        return True

    await_condition(
        attempt,
        bool,
        description or f"{getattr(block, '__name__', 'block')} to pass",
        timeout=timeout,
        intervals=intervals,
        sleep=sleep,
        clock=clock,
    )
    return outcome.get('value')


def expect_text(getter: Callable[[], Optional[str]], expected: str,
                timeout: float = DEFAULT_TIMEOUT, description: str = "text",
                exact: bool = False, **kwargs) -> str:
    """Wait for ``getter`` to contain ``expected``, failing as an assertion.

    With ``exact`` the text must equal ``expected`` instead.

    Raises:
        AssertionError: If the text never matches ``expected``
    """
    poller = poll(getter, timeout=timeout, **kwargs)
    try:
        return poller.to_be(expected) if exact else poller.to_contain(expected)
    except ConditionTimeoutError as e:
        relation = "to be" if exact else "to contain"
        raise AssertionError(
            f"Expected {description} {relation} {expected!r}, got {e.last_value!r}"
        ) from e
