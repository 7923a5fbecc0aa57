"""
Unit tests for PSC logger module.

Tests JsonFormatter output structure, SearchLogger run ID generation,
event logging with payloads and the optional JSONL file sink.
"""

import json
import logging
import os
import tempfile
import unittest
import uuid
from pathlib import Path
from unittest.mock import patch

from PSC.services.shared.logger import JsonFormatter, SearchLogger
from PSC.services.shared.settings import LoggingConfig, get_settings, reload_settings


def _record(msg="test_event", **attrs):
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def _unique_component():
    # Loggers are process-wide; a fresh name keeps handlers per test
    return f"test-{uuid.uuid4().hex[:8]}"


class TestJsonFormatter(unittest.TestCase):
    """Tests for JsonFormatter class."""

    def setUp(self):
        self.formatter = JsonFormatter()

    def test_format_includes_required_fields(self):
        record = _record(
            "search_request",
            component="search",
            run_id="run-abc-123",
            event="search_request",
            payload={"endpoint": "web"},
        )

        parsed = json.loads(self.formatter.format(record))

        self.assertEqual(parsed["level"], "INFO")
        self.assertEqual(parsed["component"], "search")
        self.assertEqual(parsed["run_id"], "run-abc-123")
        self.assertEqual(parsed["event"], "search_request")
        self.assertEqual(parsed["payload"], {"endpoint": "web"})
        self.assertTrue(parsed["timestamp"].endswith("Z"))

    def test_plain_records_fall_back_to_message(self):
        """Records from ordinary module loggers still format cleanly."""
        parsed = json.loads(self.formatter.format(_record("Brave search disabled")))

        self.assertEqual(parsed["event"], "Brave search disabled")
        self.assertEqual(parsed["component"], "unknown")
        self.assertEqual(parsed["payload"], {})

    def test_non_serializable_payload_values(self):
        record = _record(payload={"path": object()})
        parsed = json.loads(self.formatter.format(record))
        self.assertIn("object", parsed["payload"]["path"])


class TestSearchLogger(unittest.TestCase):
    """Tests for SearchLogger class."""

    def test_generates_run_id(self):
        logger = SearchLogger(_unique_component())
        self.assertEqual(str(uuid.UUID(logger.run_id)), logger.run_id)

    def test_explicit_run_id(self):
        logger = SearchLogger(_unique_component(), run_id="run-1")
        self.assertEqual(logger.run_id, "run-1")

    @patch("PSC.services.shared.logger._logging_config", return_value=LoggingConfig(level="INFO", directory=None))
    def test_logger_name_and_single_handler_set(self, _mock_config):
        component = _unique_component()
        first = SearchLogger(component)
        SearchLogger(component)

        self.assertEqual(first.logger.name, f"PSC.{component}")
        self.assertEqual(len(first.logger.handlers), 1)

    def test_log_passes_structured_extra(self):
        logger = SearchLogger(_unique_component(), run_id="run-9")

        with patch.object(logger.logger, "log") as mock_log:
            logger.log("search_completed", {"status": 200}, level=logging.DEBUG)

        mock_log.assert_called_once_with(
            logging.DEBUG,
            "search_completed",
            extra={
                "component": logger.component,
                "run_id": "run-9",
                "event": "search_completed",
                "payload": {"status": 200},
            },
        )

    def test_log_defaults_payload(self):
        logger = SearchLogger(_unique_component())

        with patch.object(logger.logger, "log") as mock_log:
            logger.log("search_request")

        self.assertEqual(mock_log.call_args.kwargs["extra"]["payload"], {})

    def test_set_run_id(self):
        logger = SearchLogger(_unique_component(), run_id="old")
        logger.set_run_id("new")

        with patch.object(logger.logger, "log") as mock_log:
            logger.log("search_request")

        self.assertEqual(mock_log.call_args.kwargs["extra"]["run_id"], "new")

    def test_writes_jsonl_file_when_directory_given(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            logger = SearchLogger(_unique_component(), run_id="run-file", log_dir=tmpdir)
            logger.log("search_failed", {"error": "boom"})

            log_file = os.path.join(tmpdir, "run-file.jsonl")
            with open(log_file) as f:
                lines = [json.loads(line) for line in f if line.strip()]

            for handler in list(logger.logger.handlers):
                handler.close()
                logger.logger.removeHandler(handler)

        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0]["event"], "search_failed")
        self.assertEqual(lines[0]["payload"], {"error": "boom"})

    def test_each_run_gets_its_own_file(self):
        """Loggers sharing a component write every run to that run's file only."""
        component = _unique_component()
        with tempfile.TemporaryDirectory() as tmpdir:
            first = SearchLogger(component, run_id="run-a", log_dir=tmpdir)
            second = SearchLogger(component, run_id="run-b", log_dir=tmpdir)
            first.log("search_request", {"query": "a"})
            second.log("search_request", {"query": "b"})
            second.set_run_id("run-c")
            second.log("search_completed")

            events = {}
            for run_id in ("run-a", "run-b", "run-c"):
                with open(os.path.join(tmpdir, f"{run_id}.jsonl")) as f:
                    events[run_id] = [json.loads(line) for line in f if line.strip()]

            for handler in list(first.logger.handlers):
                handler.close()
                first.logger.removeHandler(handler)

        self.assertEqual([e["payload"] for e in events["run-a"]], [{"query": "a"}])
        self.assertEqual([e["payload"] for e in events["run-b"]], [{"query": "b"}])
        self.assertEqual([e["event"] for e in events["run-c"]], ["search_completed"])


class TestSearchLoggerSettings(unittest.TestCase):
    """Level and directory come from the logging settings section."""

    def setUp(self):
        env = {k: v for k, v in os.environ.items() if k not in ("LOG_LEVEL", "PSC_LOG_DIR", "PSC_ENV")}
        env_patcher = patch.dict(os.environ, env, clear=True)
        env_patcher.start()
        self.addCleanup(env_patcher.stop)
        self.addCleanup(get_settings.cache_clear)

        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def test_yaml_logging_section_applies(self):
        log_dir = Path(self.tmpdir.name) / "logs"
        config_path = Path(self.tmpdir.name) / "config.yaml"
        config_path.write_text(f"logging:\n  level: DEBUG\n  directory: {log_dir}\n")

        settings = reload_settings(config_path)
        self.assertEqual(settings.logging.level, "DEBUG")

        with patch("PSC.services.shared.settings.get_settings", return_value=settings):
            logger = SearchLogger(_unique_component(), run_id="run-yaml")
        logger.log("search_decoded", level=logging.DEBUG)

        for handler in list(logger.logger.handlers):
            handler.close()
            logger.logger.removeHandler(handler)

        self.assertEqual(logger.logger.level, logging.DEBUG)
        self.assertTrue((log_dir / "run-yaml.jsonl").exists())
        self.assertIn("search_decoded", (log_dir / "run-yaml.jsonl").read_text())

    def test_reads_cached_settings_by_default(self):
        config_path = Path(self.tmpdir.name) / "config.yaml"
        config_path.write_text("logging:\n  level: WARNING\n")

        with patch("PSC.services.shared.settings.get_settings", return_value=reload_settings(config_path)):
            logger = SearchLogger(_unique_component())

        self.assertEqual(logger.logger.level, logging.WARNING)
        self.assertIsNone(logger.log_dir)


if __name__ == "__main__":
    unittest.main()
