import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_TAGS = ("component", "run_id")


def _logging_config():
    """The ``logging`` settings section (LOG_LEVEL, PSC_LOG_DIR or config.yaml)."""
    from PSC.services.shared.settings import get_settings

    return get_settings().logging


class JsonFormatter(logging.Formatter):
    """
    Renders each record as one JSON line: timestamp, level, component,
    run_id, event and payload. Records from plain module loggers use their
    message as the event.
    """
    def format(self, record):
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
        }
        for tag in _TAGS:
            entry[tag] = getattr(record, tag, "unknown")
        entry["event"] = getattr(record, "event", record.getMessage())
        entry["payload"] = getattr(record, "payload", {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class RunFilter(logging.Filter):
    """Passes only records tagged with one run id."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def filter(self, record):
        return getattr(record, "run_id", None) == self.run_id


class SearchLogger:
    """Structured event logger for one component, tagged with a run id.

    Level and log directory come from the ``logging`` settings unless a
    directory is passed explicitly. The console handler is attached once per
    component logger. With a directory, each run id gets its own
    ``<run_id>.jsonl`` file that receives only that run's events.
    """

    def __init__(self, component_name: str, run_id: Optional[str] = None, log_dir: Optional[str] = None):
        config = _logging_config()
        self.component = component_name
        self.run_id = run_id or str(uuid.uuid4())
        self.log_dir = log_dir or config.directory
        self.logger = logging.getLogger(f"PSC.{component_name}")
        self.logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

        if not any(type(h) is logging.StreamHandler for h in self.logger.handlers):
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(JsonFormatter())
            self.logger.addHandler(stream_handler)
        self._ensure_run_file()

    def _ensure_run_file(self) -> None:
        if not self.log_dir:
            return
        os.makedirs(self.log_dir, exist_ok=True)
        path = os.path.abspath(os.path.join(self.log_dir, f"{self.run_id}.jsonl"))
        for handler in self.logger.handlers:
            if isinstance(handler, logging.FileHandler) and handler.baseFilename == path:
                return

        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(JsonFormatter())
        file_handler.addFilter(RunFilter(self.run_id))
        self.logger.addHandler(file_handler)

    def log(self, event: str, payload: Optional[Dict[str, Any]] = None, level: int = logging.INFO):
        """
        Emit one search event.

        :param event: Event name, e.g. 'search_request' or 'search_failed'
        :param payload: Event fields; never include the API key
        :param level: Standard logging level for the record
        """
        self.logger.log(level, event, extra={
            "component": self.component,
            "run_id": self.run_id,
            "event": event,
            "payload": payload or {},
        })

    def set_run_id(self, run_id: str):
        """Tag later events with a new run id; they go to that run's own file."""
        self.run_id = run_id
        self._ensure_run_file()
