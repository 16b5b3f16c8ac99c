"""Relay delegate callbacks into Qt signals.

The delegate invokes its callbacks on the worker thread. Connecting these
signals to slots on GUI objects gives queued delivery on the GUI thread.

Usage:
    bridge = LogcatSignalBridge(parent=self)
    bridge.message_received.connect(self._append_message)
    self._delegate = bridge.create_delegate(arguments='-b main')
    self._delegate.register()
"""

from __future__ import annotations

from typing import Any, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from utils import common

from .delegate import LogcatDelegate
from .models import LogcatMessage


logger = common.get_logger('logcat_qt_bridge')


class LogcatSignalBridge(QObject):
    """Subscriber adapter emitting one signal per delegate callback."""

    message_received = pyqtSignal(object)  # LogcatMessage
    exception_raised = pyqtSignal(object)  # Exception
    error_occurred = pyqtSignal(str)
    deregistered = pyqtSignal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)

    def on_new_message(self, message: LogcatMessage) -> None:
        self.message_received.emit(message)

    def on_exception(self, error: Exception) -> None:
        logger.warning('Relaying logcat error to Qt: %s', error)
        self.exception_raised.emit(error)
        self.error_occurred.emit(str(error))

    def on_deregistered(self) -> None:
        self.deregistered.emit()

    def create_delegate(self, **kwargs: Any) -> LogcatDelegate:
        """Return a delegate whose callbacks are this bridge's signals."""
        return LogcatDelegate(
            on_new_message=self.on_new_message,
            on_exception=self.on_exception,
            **kwargs,
        )
