"""Utility with command builders for the logcat capture process."""

import shlex
from typing import List, Optional, Sequence

from config.constants import LogcatConstants


def get_adb_command() -> str:
  """Get the ADB executable name."""
  return LogcatConstants.ADB_EXECUTABLE


def _build_adb_command(serial_num: Optional[str] = None, *command_parts: str) -> List[str]:
  """Build ADB command with proper prefix and device selection.

  Args:
    serial_num: Device serial number (optional)
    *command_parts: Command parts to append

  Returns:
    Complete ADB argv list
  """
  parts = [get_adb_command()]

  if serial_num:
    parts.extend(['-s', serial_num])

  parts.extend(command_parts)
  return parts


def split_arguments(arguments: str) -> List[str]:
  """Split a logcat argument string the way a POSIX shell would."""
  return shlex.split(arguments or '')


def find_reserved_argument(arguments: str) -> Optional[str]:
  """Return the first token that would change the logcat output format.

  The ``-v``/``--format`` switch is owned by the capture pipeline, which
  always requests ``threadtime,epoch``. Returns ``None`` when the argument
  string is acceptable.
  """
  for token in split_arguments(arguments):
    if token == '-v' or (token.startswith('-v') and not token.startswith('--')):
      return token
    if token == '--format' or token.startswith('--format='):
      return token
  return None


def logcat_command_prefix(serial_num: Optional[str] = None, use_adb: bool = False) -> List[str]:
  """Return the argv prefix that launches logcat.

  On device the ``logcat`` binary is invoked directly; on a host the stream
  is read through ``adb [-s serial] logcat``.
  """
  if use_adb or serial_num:
    return _build_adb_command(serial_num, LogcatConstants.LOGCAT_EXECUTABLE)
  return [LogcatConstants.LOGCAT_EXECUTABLE]


def cmd_logcat_stream(
    serial_num: Optional[str] = None,
    arguments: str = LogcatConstants.DEFAULT_ARGUMENTS,
    use_adb: bool = False,
    prefix: Optional[Sequence[str]] = None) -> List[str]:
  """Build the streaming logcat command.

  Args:
    serial_num: Device serial number, implies ``use_adb``
    arguments: Caller supplied logcat arguments, e.g. ``-b all``
    use_adb: Read the stream through adb instead of a local logcat
    prefix: Explicit argv prefix overriding ``serial_num``/``use_adb``

  Returns:
    argv list ending with the fixed output format switch

  Raises:
    ReservedArgumentError: ``arguments`` tries to override the format
  """
  reserved = find_reserved_argument(arguments)
  if reserved is not None:
    # Imported here to keep utils importable without the logcat module.
    from modules.logcat.errors import ReservedArgumentError
    raise ReservedArgumentError(reserved)

  command = list(prefix) if prefix is not None else logcat_command_prefix(serial_num, use_adb)
  command.extend(split_arguments(arguments))
  command.extend(LogcatConstants.FORMAT_ARGUMENTS)
  return command


def cmd_clear_device_logcat(serial_num: Optional[str] = None) -> List[str]:
  """Clears device logcat."""
  # adb -s $serial logcat -b all -c
  return _build_adb_command(serial_num, LogcatConstants.LOGCAT_EXECUTABLE, '-b', 'all', '-c')
