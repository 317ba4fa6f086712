import io
import logging
import tempfile
import unittest
from contextlib import redirect_stderr
from pathlib import Path

from mockdata.__main__ import main
from mockdata.runtime.logging_utils import (
    WarningCollector,
    resolve_logger,
    setup_run_logger,
)


class EntrypointAndLoggingTests(unittest.TestCase):
    def test_module_main_returns_nonzero_and_guidance_message(self):
        buffer = io.StringIO()
        with redirect_stderr(buffer):
            code = main()
        self.assertEqual(code, 1)
        self.assertIn("does not provide a CLI", buffer.getvalue())

    def test_setup_run_logger_writes_run_log_into_log_dir(self):
        logger_name = "mockdata_test_logger"
        with tempfile.TemporaryDirectory() as tmp:
            logger, log_path = setup_run_logger(log_dir=tmp, name=logger_name)
            logger.info("test-log-entry")

            path = Path(log_path)
            self.assertEqual(path.parent, Path(tmp))
            self.assertTrue(path.name.startswith("run_"))
            self.assertTrue(path.exists())

            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

    def test_setup_run_logger_without_log_dir_writes_no_file(self):
        logger, log_path = setup_run_logger(log_dir=None, name="mockdata_test_no_file")
        self.assertIsNone(log_path)
        self.assertEqual(len(logger.handlers), 1)

        _, log_path = setup_run_logger(log_dir="  ", name="mockdata_test_no_file")
        self.assertIsNone(log_path)

    def test_setup_run_logger_ignores_handler_close_errors(self):
        class _BrokenHandler(logging.Handler):
            def emit(self, record):
                return None

            def close(self):
                raise RuntimeError("close failed")

        logger_name = "mockdata_test_logger_broken_close"
        logger = logging.getLogger(logger_name)
        logger.handlers = []
        logger.addHandler(_BrokenHandler())

        logger, log_path = setup_run_logger(log_dir=None, name=logger_name)
        logger.warning("warn")
        self.assertIsNone(log_path)
        self.assertFalse(any(isinstance(h, _BrokenHandler) for h in logger.handlers))

    def test_warning_collector_keeps_warnings_only(self):
        logger = logging.getLogger("mockdata_test_collector")
        logger.setLevel(logging.INFO)
        collector = WarningCollector()
        logger.addHandler(collector)
        try:
            logger.info("ignored")
            logger.warning("kept %s", "value")
        finally:
            logger.removeHandler(collector)
        self.assertEqual(collector.messages, ["kept value"])

    def test_resolve_logger_defaults_to_package_logger(self):
        self.assertEqual(resolve_logger().name, "mockdata")
        sentinel = object()
        self.assertIs(resolve_logger(sentinel), sentinel)


if __name__ == "__main__":
    unittest.main()
