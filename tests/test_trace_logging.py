import os
import sys
import threading
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from modules.logcat.delegate import LogcatDelegate
from utils import common


class CaptureTraceIdTests(unittest.TestCase):
    def test_callbacks_run_inside_session_trace_scope(self):
        observed = []
        received = threading.Event()

        def on_new_message(message):
            observed.append(common.get_trace_id())
            received.set()

        script = "print('  1609459201.000  1  2 I Tag: body', flush=True)\nimport time\ntime.sleep(30)\n"
        delegate = LogcatDelegate(
            on_new_message=on_new_message,
            arguments='',
            command_prefix=[sys.executable, '-u', '-c', script],
            clock=lambda: 1609459200.0,
        )
        self.addCleanup(delegate.deregister)

        delegate.register()
        self.assertTrue(received.wait(10))
        delegate.deregister()

        self.assertEqual(len(observed), 1)
        self.assertNotEqual(observed[0], '-')
        self.assertEqual(common.get_trace_id(), '-')

    def test_each_registration_gets_a_new_trace_id(self):
        observed = []
        received = threading.Event()

        def on_new_message(message):
            observed.append(common.get_trace_id())
            received.set()

        script = "print('  1609459201.000  1  2 I Tag: body', flush=True)\nimport time\ntime.sleep(30)\n"
        delegate = LogcatDelegate(
            on_new_message=on_new_message,
            arguments='',
            command_prefix=[sys.executable, '-u', '-c', script],
            clock=lambda: 1609459200.0,
        )
        self.addCleanup(delegate.deregister)

        for _ in range(2):
            received.clear()
            delegate.register()
            self.assertTrue(received.wait(10))
            delegate.deregister()

        self.assertEqual(len(observed), 2)
        self.assertNotEqual(observed[0], observed[1])


if __name__ == '__main__':
    unittest.main()
