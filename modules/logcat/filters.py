"""Message filters applied by the capture delegate before delivery."""

from __future__ import annotations

import re
import threading
from enum import Enum
from typing import Iterable, Iterator, Tuple

from .errors import InvalidPatternError, UnsupportedConfigurationError
from .formatter import format_message
from .models import LogcatMessage, Priority


class MessageSpan(Enum):
    """Which part of a message a filter pattern is matched against."""

    FULL = 'full'
    TAG = 'tag'
    BODY = 'body'


class FilterMode(Enum):
    """How a filter was constructed."""

    PATTERN = 'pattern'
    FORCED_PRIORITY = 'forced_priority'


def _compile(pattern: str, flags: int = 0) -> re.Pattern:
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise InvalidPatternError(pattern, str(exc)) from exc


class MessageFilter:
    """A pattern that must FULLY match part of a message for it to pass.

    Build instances with :meth:`pattern_filter` or :meth:`priority_filter`.
    Priority filters always match the priority letter; their span cannot be
    changed.
    """

    def __init__(
        self,
        pattern: str,
        mode: FilterMode = FilterMode.PATTERN,
        span: MessageSpan = MessageSpan.FULL,
        reversed: bool = False,
        flags: int = 0,
    ) -> None:
        if mode is FilterMode.FORCED_PRIORITY:
            if span is not MessageSpan.FULL:
                raise UnsupportedConfigurationError('Message span is not supported on priority filters')
            valid_letters = Priority.letters()
            if not pattern or any(letter not in valid_letters for letter in pattern.split('|')):
                raise InvalidPatternError(pattern, 'priority filters match an alternation of V D I W E F letters')
        self._compiled = _compile(pattern, flags)
        self._mode = mode
        self._span = span
        self._reversed = bool(reversed)

    @classmethod
    def pattern_filter(
        cls,
        pattern: str,
        span: MessageSpan = MessageSpan.FULL,
        reversed: bool = False,
        flags: int = 0,
    ) -> 'MessageFilter':
        return cls(pattern, FilterMode.PATTERN, span, reversed, flags)

    @classmethod
    def priority_filter(cls, priorities: Iterable[Priority], reversed: bool = False) -> 'MessageFilter':
        letters = []
        for priority in priorities:
            if priority.letter not in letters:
                letters.append(priority.letter)
        if not letters:
            raise InvalidPatternError('', 'a priority filter needs at least one priority')
        return cls('|'.join(letters), FilterMode.FORCED_PRIORITY, MessageSpan.FULL, reversed)

    @property
    def pattern(self) -> str:
        return self._compiled.pattern

    @property
    def mode(self) -> FilterMode:
        return self._mode

    @property
    def span(self) -> MessageSpan:
        return self._span

    @span.setter
    def span(self, span: MessageSpan) -> None:
        if self._mode is FilterMode.FORCED_PRIORITY:
            raise UnsupportedConfigurationError('Message span is not supported on priority filters')
        self._span = span

    @property
    def reversed(self) -> bool:
        return self._reversed

    @reversed.setter
    def reversed(self, value: bool) -> None:
        self._reversed = bool(value)

    def _span_text(self, message: LogcatMessage) -> str:
        if self._mode is FilterMode.FORCED_PRIORITY:
            return message.priority.letter
        if self._span is MessageSpan.TAG:
            return message.tag
        if self._span is MessageSpan.BODY:
            return message.body
        return format_message(message)

    def accepts(self, message: LogcatMessage) -> bool:
        found = self._compiled.fullmatch(self._span_text(message)) is not None
        return found != self._reversed

    def __repr__(self) -> str:
        return (
            f'MessageFilter(pattern={self.pattern!r}, mode={self._mode.value}, '
            f'span={self._span.value}, reversed={self._reversed})'
        )


class FilterChain:
    """Ordered filters combined with AND semantics.

    Mutations swap an immutable snapshot under a lock, so filters may be added
    or removed while a capture worker is evaluating messages.
    """

    def __init__(self, filters: Iterable[MessageFilter] = ()) -> None:
        self._lock = threading.Lock()
        self._filters: Tuple[MessageFilter, ...] = tuple(filters)

    def add(self, message_filter: MessageFilter) -> None:
        with self._lock:
            self._filters = self._filters + (message_filter,)

    def remove(self, message_filter: MessageFilter) -> None:
        with self._lock:
            if message_filter not in self._filters:
                return
            filters = list(self._filters)
            filters.remove(message_filter)
            self._filters = tuple(filters)

    def clear(self) -> None:
        with self._lock:
            self._filters = ()

    def accepts(self, message: LogcatMessage) -> bool:
        for message_filter in self._filters:
            if not message_filter.accepts(message):
                return False
        return True

    def __iter__(self) -> Iterator[MessageFilter]:
        return iter(self._filters)

    def __len__(self) -> int:
        return len(self._filters)
