import json
import logging
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "core"))

from cefboot_core.logging_setup import JsonFormatter, configure_logging, get_logger


class LoggingSetupTests(unittest.TestCase):
    def test_json_formatter_carries_event(self):
        record = logging.LogRecord("cefboot.installer", logging.INFO, __file__, 1, "installed %s", ("x",), None)
        record.event = "install_complete"
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["msg"], "installed x")
        self.assertEqual(payload["event"], "install_complete")
        self.assertEqual(payload["level"], "INFO")
        self.assertIn("thread", payload)

    def test_child_loggers_share_root(self):
        self.assertEqual(get_logger("installer").name, "cefboot.installer")
        self.assertEqual(get_logger().name, "cefboot")

    def test_configure_logging_writes_file(self):
        logger = logging.getLogger("cefboot")
        saved = list(logger.handlers)
        for handler in saved:
            logger.removeHandler(handler)
        try:
            with tempfile.TemporaryDirectory() as tmp:
                configured = configure_logging(console=False, directory=Path(tmp))
                get_logger("test").info("hello", extra={"event": "probe"})
                for handler in list(configured.handlers):
                    handler.close()
                    configured.removeHandler(handler)

                lines = (Path(tmp) / "cefboot.log").read_text(encoding="utf-8").splitlines()
                events = [json.loads(line).get("event") for line in lines]
                self.assertEqual(events, ["logging_configured", "probe"])
        finally:
            for handler in saved:
                logger.addHandler(handler)


if __name__ == "__main__":
    unittest.main()
