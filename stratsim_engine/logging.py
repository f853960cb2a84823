"""
Logging configuration for the StratSim engine.

Every line carries an ISO timestamp and, while a backtest is running, the
run id set by run_context(), so interleaved concurrent runs can be told
apart. JSON output emits one object per line.
"""

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime

current_run_id: ContextVar[str | None] = ContextVar("current_run_id", default=None)

TEXT_FORMAT = "%(timestamp)s | %(levelname)-8s | %(name)s | %(run_id)s%(message)s"


class StratSimFormatter(logging.Formatter):
    """
    Formatter adding `timestamp` and `run_id` attributes to each record.

    With json_output the record is rendered as a JSON object instead of
    through the format string.
    """

    def __init__(self, fmt: str | None = TEXT_FORMAT, json_output: bool = False):
        super().__init__(fmt)
        self._json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        record.timestamp = datetime.now(UTC).isoformat()
        run_id = current_run_id.get()

        if self._json_output:
            payload = {
                "timestamp": record.timestamp,
                "level": record.levelname,
                "module": record.name,
                "run_id": run_id,
                "message": record.getMessage(),
            }
            if record.exc_info:
                payload["exception"] = self.formatException(record.exc_info)
            return json.dumps(payload, default=str)

        record.run_id = f"[{run_id}] " if run_id else ""
        return super().format(record)


def setup_logging(level: str = "INFO", json_output: bool = False) -> logging.Logger:
    """
    Configure the root logger with a single stdout handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: If True, one JSON object per line

    Returns:
        Configured root logger
    """
    root = logging.getLogger()
    root.handlers.clear()

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(StratSimFormatter(json_output=json_output))
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for a module (pass __name__)."""
    return logging.getLogger(name)


@contextmanager
def run_context(run_id: str) -> Iterator[None]:
    """Tag log lines emitted inside the block with run_id."""
    token = current_run_id.set(run_id)
    try:
        yield
    finally:
        current_run_id.reset(token)

