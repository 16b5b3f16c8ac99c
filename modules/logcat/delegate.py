"""Capture delegate owning the logcat process and its worker thread."""

from __future__ import annotations

import subprocess
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence

from config.constants import LogcatConstants
from utils import adb_commands, common

from .errors import ExpectedShutdown, ProcessFaultError
from .filters import FilterChain, MessageFilter
from .models import LogcatMessage
from .parser import LogcatParser


logger = common.get_logger('logcat_delegate')


MessageCallback = Callable[[LogcatMessage], None]
ExceptionCallback = Callable[[Exception], None]
CompletionCallback = Callable[[], None]
Clock = Callable[[], float]


@dataclass
class _CaptureSession:
    """State of one registration period, shared with its worker thread."""

    registered_at_ms: int
    trace_id: str = field(default_factory=common.generate_trace_id)
    stop_event: threading.Event = field(default_factory=threading.Event)
    finished: threading.Event = field(default_factory=threading.Event)
    process: Optional[subprocess.Popen] = None
    thread: Optional[threading.Thread] = None
    on_complete: Optional[CompletionCallback] = None


class LogcatDelegate:
    """Streams parsed, filtered logcat messages to a subscriber.

    ``register()`` starts a background worker that spawns logcat, parses every
    line and hands accepted messages to ``on_new_message`` in stream order.
    Entries logged before registration (history replayed by logcat on start)
    are dropped. Callbacks always run on the worker thread; subscribers that
    need another thread must hop there themselves.

    A subscriber must not write to logcat from ``on_new_message`` without a
    filter excluding its own output, or it will feed on itself.
    """

    def __init__(
        self,
        on_new_message: MessageCallback,
        on_exception: Optional[ExceptionCallback] = None,
        arguments: str = LogcatConstants.DEFAULT_ARGUMENTS,
        command_prefix: Sequence[str] = (LogcatConstants.LOGCAT_EXECUTABLE,),
        filters: Optional[Iterable[MessageFilter]] = None,
        clock: Clock = time.time,
        respawn_delay_s: float = LogcatConstants.RESPAWN_DELAY_S,
        parser: Optional[LogcatParser] = None,
    ) -> None:
        self._on_new_message = on_new_message
        self._on_exception = on_exception
        self._arguments = arguments
        self._command_prefix: List[str] = list(command_prefix)
        self._filters = FilterChain(filters or ())
        self._clock = clock
        self._respawn_delay_s = respawn_delay_s
        self._parser = parser or LogcatParser()

        self._lock = threading.RLock()
        self._running = False
        self._session: Optional[_CaptureSession] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def arguments(self) -> str:
        return self._arguments

    @arguments.setter
    def arguments(self, arguments: str) -> None:
        """Set the logcat arguments used from the next spawn on.

        The ``-v``/``--format`` switch is rejected when the worker builds the
        command; call :meth:`build_command` to check eagerly.
        """
        self._arguments = arguments

    @property
    def filters(self) -> FilterChain:
        return self._filters

    @property
    def parser(self) -> LogcatParser:
        return self._parser

    def add_filter(self, message_filter: MessageFilter) -> None:
        self._filters.add(message_filter)

    def remove_filter(self, message_filter: MessageFilter) -> None:
        self._filters.remove(message_filter)

    def build_command(self) -> List[str]:
        """Return the argv the worker will spawn, raising ReservedArgumentError."""
        return adb_commands.cmd_logcat_stream(arguments=self._arguments, prefix=self._command_prefix)

    @property
    def registered_at_ms(self) -> Optional[int]:
        with self._lock:
            return self._session.registered_at_ms if self._session else None

    # ------------------------------------------------------------------
    # Lifecycle management
    # ------------------------------------------------------------------
    def register(self) -> None:
        """Start receiving messages. No-op while already registered."""
        with self._lock:
            if self._running:
                return

            previous = self._session
            session = _CaptureSession(registered_at_ms=int(self._clock() * 1000))
            thread = threading.Thread(
                target=self._run,
                args=(session, previous),
                name=f'logcat-delegate-{session.trace_id[:8]}',
                daemon=True,
            )
            session.thread = thread
            self._session = session
            self._running = True
            thread.start()

        logger.info('Logcat delegate registered (session %s)', session.trace_id)

    def deregister_async(self, on_complete: Optional[CompletionCallback] = None) -> None:
        """Stop receiving messages without blocking.

        ``on_complete`` is invoked once on the worker thread after the
        process has been reaped.
        """
        self._stop(on_complete)

    def deregister(self) -> None:
        """Stop receiving messages and block until the worker has exited."""
        session = self._stop()

        if session is None or session.thread is threading.current_thread():
            return
        session.thread.join()

    def is_registered(self) -> bool:
        with self._lock:
            return self._running

    def _stop(self, on_complete: Optional[CompletionCallback] = None) -> Optional[_CaptureSession]:
        """Stop the running session, if any, and return the latest session.

        The session is picked and stopped under one lock acquisition, so the
        returned session is the one a caller must wait on.
        """
        with self._lock:
            session = self._session
            if not self._running:
                return session
            session.on_complete = on_complete
            session.stop_event.set()
            self._running = False
            process = session.process

        logger.info('Logcat delegate deregistering (session %s)', session.trace_id)
        if process is not None:
            self._terminate(process)
        return session

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------
    def _run(self, session: _CaptureSession, previous: Optional[_CaptureSession]) -> None:
        with common.trace_id_scope(session.trace_id):
            if previous is not None:
                previous.finished.wait()
            try:
                self._capture(session)
            except ExpectedShutdown:
                logger.debug('Logcat read interrupted by deregistration')
            except Exception as exc:
                if session.stop_event.is_set():
                    logger.debug('Ignoring error raised during shutdown: %s', exc)
                else:
                    logger.error('Logcat capture failed: %s', exc)
                    self._report_exception(exc)
            finally:
                self._teardown(session)

    def _capture(self, session: _CaptureSession) -> None:
        command = self.build_command()
        while not session.stop_event.is_set():
            process = self._spawn(command)
            with self._lock:
                session.process = process
                stopping = session.stop_event.is_set()
            if stopping:
                self._terminate(process)

            try:
                self._pump(session, process)
            except BaseException:
                self._terminate(process)
                raise
            finally:
                returncode = self._reap(process)

            if session.stop_event.is_set():
                return
            if returncode != 0:
                raise ProcessFaultError(command, returncode=returncode)

            logger.info('Logcat exited cleanly, respawning in %.1fs', self._respawn_delay_s)
            if session.stop_event.wait(self._respawn_delay_s):
                return

    def _spawn(self, command: Sequence[str]) -> subprocess.Popen:
        logger.info('Starting logcat: %s', ' '.join(command))
        try:
            return subprocess.Popen(
                list(command),
                shell=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                stdin=subprocess.DEVNULL,
                text=True,
                encoding='utf-8',
                errors='replace',
                bufsize=1,
            )
        except OSError as exc:
            raise ProcessFaultError(command, reason=str(exc)) from exc

    def _pump(self, session: _CaptureSession, process: subprocess.Popen) -> None:
        registered_at_ms = session.registered_at_ms
        try:
            for line in process.stdout:
                if session.stop_event.is_set():
                    break
                message = self._parser.parse_line(line)
                if message is None or message.logged_at_ms < registered_at_ms:
                    continue
                if self._filters.accepts(message):
                    self._on_new_message(message)
        except (OSError, ValueError) as exc:
            if session.stop_event.is_set():
                raise ExpectedShutdown(str(exc)) from exc
            raise

    def _reap(self, process: subprocess.Popen) -> int:
        if process.stdout is not None:
            try:
                process.stdout.close()
            except OSError as exc:
                logger.debug('Closing logcat stdout failed: %s', exc)
        return process.wait()

    def _terminate(self, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        try:
            process.terminate()
        except OSError as exc:
            logger.debug('Terminate skipped (process already gone): %s', exc)
            return

        killer = threading.Timer(LogcatConstants.TERMINATE_GRACE_S, self._kill_if_alive, args=(process,))
        killer.daemon = True
        killer.start()

    def _kill_if_alive(self, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        logger.warning('Logcat did not terminate in time, killing it')
        try:
            process.kill()
        except OSError as exc:
            logger.debug('Kill skipped (process already gone): %s', exc)

    def _teardown(self, session: _CaptureSession) -> None:
        with self._lock:
            if self._session is session:
                self._running = False
            session.process = None
            callback = session.on_complete
            session.on_complete = None

        if callback is not None:
            try:
                callback()
            except Exception:
                logger.exception('Deregistration callback failed')

        logger.info('Logcat delegate stopped (session %s)', session.trace_id)
        session.finished.set()

    def _report_exception(self, exc: Exception) -> None:
        if self._on_exception is None:
            return
        try:
            self._on_exception(exc)
        except Exception:
            logger.exception('Exception callback failed')
