"""Application constants and configuration values."""


class LogcatConstants:
    """Capture process constants."""

    LOGCAT_EXECUTABLE = 'logcat'
    ADB_EXECUTABLE = 'adb'

    # Default selects every log buffer (main, system, crash, events, ...)
    DEFAULT_ARGUMENTS = '-b all'

    # Output format requested from logcat; callers may not override it
    OUTPUT_FORMAT = 'threadtime,epoch'
    FORMAT_ARGUMENTS = ('-v', OUTPUT_FORMAT)

    # Seconds to wait before respawning a logcat that exited cleanly
    RESPAWN_DELAY_S = 0.5

    # Seconds to wait for a terminated logcat before killing it
    TERMINATE_GRACE_S = 2.0


class FormatConstants:
    """Message formatting constants."""

    DEFAULT_TEMPLATE = '%de %p %r %vc %t: %m'

    # ``None`` renders ``%d`` as ISO-8601 with millisecond precision
    DEFAULT_DATE_LAYOUT = None


class LoggingConstants:
    """Logging configuration constants."""

    DEFAULT_LOG_LEVEL = 'INFO'
    DEBUG_LOG_LEVEL = 'DEBUG'
    VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class ApplicationConstants:
    """General application constants."""

    APP_NAME = "Logcat Delegate"
    APP_VERSION = "1.0.0"
    APP_DESCRIPTION = "Threaded logcat capture with parsing and message filters"
