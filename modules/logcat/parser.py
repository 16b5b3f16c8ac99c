"""Parsing helpers for logcat ``threadtime,epoch`` output."""

from __future__ import annotations

import re
import threading
from typing import Dict, Optional

from .errors import InvalidPriorityError
from .models import LogcatMessage, Priority


# Example: "  1609459200.123  1234  5678 I MyTag: hello world"
_RE_THREADTIME_EPOCH = re.compile(
    r'^ *(?P<seconds>\d+)(?:\.(?P<fraction>\d{1,3}))?\s+'
    r'(?P<pid>\d+)\s+(?P<tid>\d+)\s+'
    r'(?P<priority>\S)\s+'
    r'(?P<tag>[^:]*):(?:\s+(?P<body>.*))?$'
)


def _fraction_to_ms(fraction: Optional[str]) -> int:
    if not fraction:
        return 0
    # "1" -> 100 ms, "12" -> 120 ms, "123" -> 123 ms
    return int(fraction.ljust(3, '0'))


def parse_line(raw: str) -> Optional[LogcatMessage]:
    """Parse a single logcat line into a :class:`LogcatMessage`.

    Returns ``None`` for lines that are not log entries (buffer banners,
    continuation lines, blank lines) and for entries whose priority letter
    is not one of ``V D I W E F``.
    """
    if not raw:
        return None

    line = raw.rstrip('\r\n')
    match = _RE_THREADTIME_EPOCH.match(line)
    if not match:
        return None

    try:
        priority = Priority.from_letter(match.group('priority'))
    except InvalidPriorityError:
        return None

    logged_at_ms = int(match.group('seconds')) * 1000 + _fraction_to_ms(match.group('fraction'))

    return LogcatMessage(
        logged_at_ms=logged_at_ms,
        priority=priority,
        pid=int(match.group('pid')),
        tid=int(match.group('tid')),
        tag=match.group('tag').rstrip(),
        body=match.group('body') or '',
        raw=line,
    )


class LogcatParser:
    """Stateless line parser that keeps thread-safe acceptance counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._parsed = 0
        self._rejected = 0

    def parse_line(self, raw: str) -> Optional[LogcatMessage]:
        message = parse_line(raw)
        with self._lock:
            if message is None:
                self._rejected += 1
            else:
                self._parsed += 1
        return message

    @property
    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {'parsed': self._parsed, 'rejected': self._rejected}

    def reset_stats(self) -> None:
        with self._lock:
            self._parsed = 0
            self._rejected = 0
