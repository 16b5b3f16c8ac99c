"""Exception types raised by the logcat capture pipeline."""

from __future__ import annotations

from typing import Optional, Sequence


class LogcatError(RuntimeError):
    """Base class for logcat capture errors."""


class InvalidPriorityError(LogcatError, ValueError):
    """Raised when a numeric code or letter does not name a priority."""

    def __init__(self, value: object) -> None:
        super().__init__(
            f'Invalid priority {value!r}. Valid codes are 2-7 and valid letters are V, D, I, W, E and F'
        )
        self.value = value


class InvalidPatternError(LogcatError, ValueError):
    """Raised when a filter pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f'Invalid filter pattern {pattern!r}: {reason}')
        self.pattern = pattern
        self.reason = reason


class UnsupportedConfigurationError(LogcatError):
    """Raised when a filter is configured in a way its mode does not allow."""


class ReservedArgumentError(LogcatError, ValueError):
    """Raised when capture arguments try to override the output format."""

    def __init__(self, argument: str) -> None:
        super().__init__(
            f'Logcat argument {argument!r} is reserved: the -v (--format) switch is not supported'
        )
        self.argument = argument


class ProcessFaultError(LogcatError):
    """Raised when the capture process cannot start or exits abnormally."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        if returncode is not None:
            message = f'Logcat exited with code {returncode}: {" ".join(self.command)}'
        else:
            message = f'Failed to start logcat ({reason or "unknown error"}): {" ".join(self.command)}'
        super().__init__(message)


class ExpectedShutdown(LogcatError):
    """Read interrupted because the delegate terminated its own process."""


__all__ = [
    'ExpectedShutdown',
    'InvalidPatternError',
    'InvalidPriorityError',
    'LogcatError',
    'ProcessFaultError',
    'ReservedArgumentError',
    'UnsupportedConfigurationError',
]
