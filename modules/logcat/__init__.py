"""Logcat capture subsystem."""

from .delegate import LogcatDelegate
from .errors import (
    ExpectedShutdown,
    InvalidPatternError,
    InvalidPriorityError,
    LogcatError,
    ProcessFaultError,
    ReservedArgumentError,
    UnsupportedConfigurationError,
)
from .filters import FilterChain, FilterMode, MessageFilter, MessageSpan
from .formatter import DEFAULT_TEMPLATE, format_message
from .models import LogcatMessage, Priority
from .parser import LogcatParser, parse_line

__all__ = [
    'DEFAULT_TEMPLATE',
    'ExpectedShutdown',
    'FilterChain',
    'FilterMode',
    'InvalidPatternError',
    'InvalidPriorityError',
    'LogcatDelegate',
    'LogcatError',
    'LogcatMessage',
    'LogcatParser',
    'MessageFilter',
    'MessageSpan',
    'Priority',
    'ProcessFaultError',
    'ReservedArgumentError',
    'UnsupportedConfigurationError',
    'format_message',
    'parse_line',
]
