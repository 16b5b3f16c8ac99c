"""Data models for the logcat capture pipeline."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import List, Optional, Tuple

from .errors import InvalidPriorityError


_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

@total_ordering
class Priority(Enum):
    """Logcat message priority.

    Values are the numeric constants of ``android.util.Log``. ``F`` (fatal)
    is the letter logcat prints for ``ASSERT``.
    """

    VERBOSE = (2, 'V')
    DEBUG = (3, 'D')
    INFO = (4, 'I')
    WARN = (5, 'W')
    ERROR = (6, 'E')
    ASSERT = (7, 'F')

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def letter(self) -> str:
        return self.value[1]

    @classmethod
    def from_code(cls, code: int) -> 'Priority':
        """Return the priority for an ``android.util.Log`` numeric constant."""
        for member in cls:
            if member.code == code:
                return member
        raise InvalidPriorityError(code)

    @classmethod
    def from_letter(cls, letter: str) -> 'Priority':
        """Return the priority printed as ``letter`` (one of V D I W E F)."""
        for member in cls:
            if member.letter == letter:
                return member
        raise InvalidPriorityError(letter)

    @classmethod
    def letters(cls) -> Tuple[str, ...]:
        return tuple(member.letter for member in cls)

    @classmethod
    def at_least(cls, minimum: 'Priority') -> List['Priority']:
        """Return every priority at or above ``minimum`` in severity order."""
        return [member for member in cls if member >= minimum]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Priority):
            return NotImplemented
        return self.code < other.code


@dataclass(frozen=True)
class LogcatMessage:
    """A single logcat entry parsed from ``threadtime,epoch`` output."""

    logged_at_ms: int
    priority: Priority
    pid: int
    tid: int
    tag: str
    body: str
    raw: str = ''

    @property
    def logged_at(self) -> dt.datetime:
        """Timezone-aware UTC datetime of the entry."""
        return _EPOCH + dt.timedelta(milliseconds=self.logged_at_ms)

    def formatted(
        self,
        template: Optional[str] = None,
        date_layout: Optional[str] = None,
        tz: Optional[dt.tzinfo] = None,
    ) -> str:
        """Render the message, see :func:`modules.logcat.formatter.format_message`."""
        from .formatter import DEFAULT_TEMPLATE, format_message

        return format_message(self, DEFAULT_TEMPLATE if template is None else template, date_layout, tz)
