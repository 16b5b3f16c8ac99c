#!/usr/bin/env python3
"""Extra unit tests for utils.common focusing on pure logic and safe I/O paths."""

import logging
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils import common


class TestCommonUtilsExtra(unittest.TestCase):
    def test_trace_id_lifecycle_and_filter(self) -> None:
        # Default trace id
        self.assertEqual(common.get_trace_id(), "-")

        # Direct set/reset
        token = common.set_trace_id("abc123")
        self.assertEqual(common.get_trace_id(), "abc123")
        common.reset_trace_id(token)
        self.assertEqual(common.get_trace_id(), "-")

        # Context manager
        with common.trace_id_scope("zzz"):
            self.assertEqual(common.get_trace_id(), "zzz")
            record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
            self.assertTrue(common.TraceIdFilter().filter(record))
            self.assertEqual(record.trace_id, "zzz")
        self.assertEqual(common.get_trace_id(), "-")

    def test_generated_trace_ids_are_unique(self) -> None:
        first = common.generate_trace_id()
        second = common.generate_trace_id()
        self.assertNotEqual(first, second)
        self.assertEqual(len(first), 32)

    def test_resolve_logs_dir_linux_variants(self) -> None:
        with patch("platform.system", return_value="Linux"), \
             patch.dict(os.environ, {"XDG_DATA_HOME": "/tmp/xdg"}, clear=False):
            path = common._resolve_logs_dir()  # type: ignore[attr-defined]
            self.assertTrue(str(path).endswith("/tmp/xdg/logcat_delegate/logs"))

        with patch("platform.system", return_value="Linux"), \
             patch.dict(os.environ, {"XDG_DATA_HOME": ""}, clear=False):
            path = common._resolve_logs_dir()  # type: ignore[attr-defined]
            self.assertIn("logcat_delegate/logs", str(path))

        with patch("platform.system", return_value="Darwin"):
            path = common._resolve_logs_dir()  # type: ignore[attr-defined]
            self.assertEqual(path.name, ".logcat_delegate_logs")

    def test_get_logger_creates_and_cleans_logs(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            # Fake logs dir with a stale log and an unrelated file
            stale = os.path.join(td, "logcat_delegate_19990101_000000.log")
            unrelated = os.path.join(td, "notes.log")
            for path in (stale, unrelated):
                with open(path, "w", encoding="utf-8") as f:
                    f.write("old")

            # Reset module guard and route logs to temp dir
            common._logs_cleaned_today = False  # type: ignore[attr-defined]

            logger_name = "logcat_delegate_test_cleanup"
            with patch("utils.common._resolve_logs_dir", return_value=Path(td)):
                logger = common.get_logger(logger_name)
                logger.info("hello")

            try:
                names = os.listdir(td)
                self.assertNotIn(os.path.basename(stale), names)
                self.assertIn(os.path.basename(unrelated), names)
                self.assertTrue(any(
                    name.startswith("logcat_delegate_") and name.endswith(".log") for name in names
                ))
            finally:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)

    def test_get_logger_is_idempotent(self) -> None:
        logger = common.get_logger("logcat_delegate_test_idempotent")
        handler_count = len(logger.handlers)

        again = common.get_logger("logcat_delegate_test_idempotent")
        self.assertIs(again, logger)
        self.assertEqual(len(again.handlers), handler_count)
        self.assertEqual(
            sum(isinstance(item, common.TraceIdFilter) for item in logger.filters), 1
        )

    def test_set_log_level_applies_to_managed_loggers(self) -> None:
        managed = common.get_logger("logcat_delegate_test_levels")
        unmanaged = logging.getLogger("logcat_delegate_test_unmanaged")
        unmanaged.setLevel(logging.WARNING)

        try:
            common.set_log_level("debug")
            self.assertEqual(managed.level, logging.DEBUG)
            self.assertEqual(unmanaged.level, logging.WARNING)
            for handler in managed.handlers:
                if isinstance(handler, logging.FileHandler):
                    self.assertEqual(handler.level, logging.DEBUG)
                else:
                    self.assertEqual(handler.level, logging.WARNING)
        finally:
            common.set_log_level("INFO")

        with self.assertRaises(ValueError):
            common.set_log_level("chatty")

    def test_debug_records_reach_log_file_after_set_log_level(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with patch("utils.common._resolve_logs_dir", return_value=Path(td)):
                logger = common.get_logger("logcat_delegate_test_debug_file")
            try:
                common.set_log_level("DEBUG")
                logger.debug("debug-marker")
            finally:
                common.set_log_level("INFO")
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)

            contents = "".join(
                Path(td, name).read_text(encoding="utf-8") for name in os.listdir(td) if name.endswith(".log")
            )
            self.assertIn("debug-marker", contents)

    def test_set_file_logging_detaches_and_restores_file_handlers(self) -> None:
        def file_handlers(logger):
            return [handler for handler in logger.handlers if isinstance(handler, logging.FileHandler)]

        with tempfile.TemporaryDirectory() as td:
            with patch("utils.common._resolve_logs_dir", return_value=Path(td)):
                existing = common.get_logger("logcat_delegate_test_file_toggle")
                try:
                    self.assertEqual(len(file_handlers(existing)), 1)

                    common.set_file_logging(False)
                    self.assertEqual(file_handlers(existing), [])
                    created_while_disabled = common.get_logger("logcat_delegate_test_file_toggle_new")
                    self.assertEqual(file_handlers(created_while_disabled), [])

                    common.set_file_logging(True)
                    self.assertEqual(len(file_handlers(existing)), 1)
                    self.assertEqual(len(file_handlers(created_while_disabled)), 1)
                finally:
                    common.set_file_logging(True)
                    for logger in (existing, logging.getLogger("logcat_delegate_test_file_toggle_new")):
                        for handler in list(logger.handlers):
                            handler.close()
                            logger.removeHandler(handler)


if __name__ == "__main__":
    unittest.main()
