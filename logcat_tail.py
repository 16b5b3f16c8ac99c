#!/usr/bin/env python3
"""Print filtered logcat messages to stdout until interrupted."""

from __future__ import annotations

import argparse
import subprocess
import sys
import time
from typing import List, Optional, Sequence, Tuple

from config.config_manager import AppConfig, ConfigManager
from modules.logcat import (
    LogcatDelegate,
    LogcatError,
    LogcatMessage,
    MessageFilter,
    MessageSpan,
    Priority,
    format_message,
)
from utils import adb_commands, common

logger = common.get_logger('logcat_tail')


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stream parsed and filtered logcat messages")
    parser.add_argument("--config", help="Path to the JSON configuration file")
    parser.add_argument("--serial", help="Device serial; reads through adb -s SERIAL logcat")
    parser.add_argument("--adb", action="store_true", help="Read through adb instead of a local logcat")
    parser.add_argument("--args", dest="arguments", help="Extra logcat arguments, e.g. '-b main'")
    parser.add_argument("--clear", action="store_true", help="Clear the device log buffers before streaming")
    parser.add_argument("--priority", help="Only show these priority letters, e.g. 'WEF'")
    parser.add_argument("--min-priority", help="Only show this priority letter and above")
    parser.add_argument("--tag", help="Regex the whole tag must match")
    parser.add_argument("--body", help="Regex the whole message body must match")
    parser.add_argument("--match", help="Regex the whole formatted line must match")
    parser.add_argument("--exclude", action="append", default=[],
                        help="Drop messages whose formatted line matches this regex (repeatable)")
    parser.add_argument("--format", dest="template", help="Output template, e.g. '%%vc %%t: %%m'")
    parser.add_argument("--date-layout", help="strftime layout used for %%d")
    return parser.parse_args(argv)


def build_filters(args: argparse.Namespace) -> List[MessageFilter]:
    """Translate command line options into delegate filters.

    Raises:
        InvalidPatternError: a regex option does not compile.
        InvalidPriorityError: a priority letter is unknown.
    """
    filters: List[MessageFilter] = []

    if args.priority:
        priorities = [Priority.from_letter(letter) for letter in args.priority if not letter.isspace()]
        filters.append(MessageFilter.priority_filter(priorities))
    if args.min_priority:
        filters.append(MessageFilter.priority_filter(Priority.at_least(Priority.from_letter(args.min_priority))))
    if args.tag:
        filters.append(MessageFilter.pattern_filter(args.tag, span=MessageSpan.TAG))
    if args.body:
        filters.append(MessageFilter.pattern_filter(args.body, span=MessageSpan.BODY))
    if args.match:
        filters.append(MessageFilter.pattern_filter(args.match))
    for pattern in args.exclude:
        filters.append(MessageFilter.pattern_filter(pattern, reversed=True))

    return filters


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Overlay command line options on the persisted configuration."""
    if args.arguments is not None:
        config.capture.arguments = args.arguments
    if args.serial:
        config.capture.serial = args.serial
    if args.adb:
        config.capture.use_adb = True
    if args.template:
        config.format.template = args.template
    if args.date_layout:
        config.format.date_layout = args.date_layout
    return config


def clear_device_logcat(serial: Optional[str]) -> None:
    """Clear device-side logcat buffers so streaming starts from current time."""
    try:
        subprocess.run(
            adb_commands.cmd_clear_device_logcat(serial),
            check=False,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except FileNotFoundError:
        logger.warning('ADB executable not found when clearing logcat buffer.')


def create_delegate(config: AppConfig, filters: Sequence[MessageFilter], out=None) -> Tuple[LogcatDelegate, List[Exception]]:
    """Return ``(delegate, failures)`` printing accepted messages to ``out``."""
    stream = out if out is not None else sys.stdout
    failures: List[Exception] = []
    template = config.format.template
    date_layout = config.format.date_layout

    def on_new_message(message: LogcatMessage) -> None:
        stream.write(format_message(message, template, date_layout) + '\n')
        stream.flush()

    def on_exception(error: Exception) -> None:
        failures.append(error)
        print(f'logcat_tail: {error}', file=sys.stderr)

    delegate = LogcatDelegate(
        on_new_message=on_new_message,
        on_exception=on_exception,
        arguments=config.capture.arguments,
        command_prefix=adb_commands.logcat_command_prefix(config.capture.serial, config.capture.use_adb),
        filters=filters,
        respawn_delay_s=config.capture.respawn_delay_s,
    )
    return delegate, failures


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    config = apply_overrides(ConfigManager(args.config).load_config(), args)
    common.set_log_level(config.logging.log_level)
    common.set_file_logging(config.logging.log_to_file)

    try:
        filters = build_filters(args)
    except LogcatError as exc:
        print(f'logcat_tail: {exc}', file=sys.stderr)
        return 2

    if args.clear:
        clear_device_logcat(config.capture.serial)

    delegate, failures = create_delegate(config, filters)
    delegate.register()
    try:
        while delegate.is_registered():
            time.sleep(0.2)
    except KeyboardInterrupt:
        logger.info('Interrupted, stopping capture')
    finally:
        delegate.deregister()

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
