"""Render :class:`LogcatMessage` objects with a small template language.

Valid specifiers:

* ``%d``  - timestamp rendered with ``date_layout`` (strftime syntax,
  ISO-8601 with milliseconds when ``None``)
* ``%de`` - timestamp as epoch seconds with three fractional digits
* ``%v``  - priority name
* ``%vi`` - priority numeric code
* ``%vc`` - priority letter
* ``%p``  - process ID
* ``%r``  - thread ID
* ``%t``  - tag
* ``%m``  - message body

Unknown specifiers are left untouched.
"""

from __future__ import annotations

import datetime as dt
import re
from typing import Callable, Dict, Optional

from config.constants import FormatConstants

from .models import LogcatMessage


DEFAULT_TEMPLATE = FormatConstants.DEFAULT_TEMPLATE

# Longer specifiers first so "%de" never renders as "%d" + "e".
_RE_SPECIFIER = re.compile(r'%(?:de|d|vi|vc|v|p|r|t|m)')


def format_epoch(logged_at_ms: int) -> str:
    seconds, millis = divmod(logged_at_ms, 1000)
    return f'{seconds}.{millis:03d}'


def format_date(
    logged_at_ms: int,
    date_layout: Optional[str] = None,
    tz: Optional[dt.tzinfo] = None,
) -> str:
    seconds, millis = divmod(logged_at_ms, 1000)
    moment = dt.datetime.fromtimestamp(seconds, tz=tz).replace(microsecond=millis * 1000)
    if date_layout is None:
        return moment.replace(tzinfo=None).isoformat(timespec='milliseconds')
    return moment.strftime(date_layout)


def format_message(
    message: LogcatMessage,
    template: str = DEFAULT_TEMPLATE,
    date_layout: Optional[str] = FormatConstants.DEFAULT_DATE_LAYOUT,
    tz: Optional[dt.tzinfo] = None,
) -> str:
    """Return ``message`` rendered through ``template``.

    Substitution is a single pass: text inserted for one specifier is never
    scanned again, so a body containing ``%t`` is printed as-is.
    """
    renderers: Dict[str, Callable[[], str]] = {
        '%d': lambda: format_date(message.logged_at_ms, date_layout, tz),
        '%de': lambda: format_epoch(message.logged_at_ms),
        '%v': lambda: message.priority.name,
        '%vi': lambda: str(message.priority.code),
        '%vc': lambda: message.priority.letter,
        '%p': lambda: str(message.pid),
        '%r': lambda: str(message.tid),
        '%t': lambda: message.tag,
        '%m': lambda: message.body,
    }
    return _RE_SPECIFIER.sub(lambda match: renderers[match.group(0)](), template)
