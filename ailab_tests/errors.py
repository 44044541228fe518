"""
Error types raised by phases and page objects.

Polling failures surface as ConditionTimeoutError (a TimeoutError), one-shot
UI comparisons as the builtin AssertionError, and missing catalog entries,
running apps or pages as NotFoundError.
"""

from typing import Any, Optional


class ConditionTimeoutError(TimeoutError):
    """A polled condition was not satisfied before its deadline."""

    def __init__(self, description: str, timeout: float, last_value: Any = None,
                 last_error: Optional[BaseException] = None):
        self.description = description
        self.timeout = timeout
        self.last_value = last_value
        self.last_error = last_error

        message = f"Timed out after {timeout:g}s waiting for {description}"
        if last_error is not None:
            message += f" (last error: {type(last_error).__name__}: {last_error})"
        else:
            message += f" (last value: {last_value!r})"
        super().__init__(message)


class NotFoundError(LookupError):
    """A named catalog entry, running app or page could not be located."""


class SetupError(RuntimeError):
    """Global setup failed; no test case can run."""
