"""
Logging Configuration
JSON line logging for the proxy.

Provides:
- CustomJsonFormatter: one JSON object per record, request id attached
- setup_logging: YAML dictConfig loader with ${VAR} substitution
- VictoriaLogsHandler: Direct HTTP logging with stderr fallback
- configure_queue_logging: Async log shipping for the long-lived server
"""

import atexit
import json
import logging
import logging.config
import logging.handlers
import os
import queue
import string
import sys
import urllib.error
import urllib.parse
import urllib.request
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml

from .request_context import get_request_id

_STANDARD_ATTRS = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


class CustomJsonFormatter(logging.Formatter):
    """
    JSON Formatter.

    Fields:
      - _time: ISO8601 timestamp (millisecond precision)
      - level: Log level
      - logger: Logger name (e.g. uvicorn.access, tmdb_proxy.main)
      - message: Log message
      - request_id: Request ID of the request being handled, if any
    """

    def format(self, record: logging.LogRecord) -> str:
        request_id = getattr(record, "request_id", None) or get_request_id()

        log_data = {
            "_time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if request_id:
            log_data["request_id"] = request_id

        # Include extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_") and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_LOG_CONFIG = "proxy_log.yaml"


def resolve_log_config_path(config_path: str) -> Path:
    """
    Locate the logging YAML.

    Relative paths are tried against the working directory first, then
    against the installed package, which ships proxy_log.yaml.
    """
    path = Path(config_path)
    if path.is_absolute() or path.exists():
        return path
    return PACKAGE_DIR / path


def setup_logging(config_path: str = DEFAULT_LOG_CONFIG, log_level: Optional[str] = None):
    """
    Load the YAML config, substitute environment variables, and initialize logging.
    """
    config_path = resolve_log_config_path(config_path)
    if not config_path.exists():
        logging.basicConfig(level=log_level or logging.INFO)
        return

    with open(config_path, "r", encoding="utf-8") as f:
        # Supports ${LOG_LEVEL} format.
        template = string.Template(f.read())

    mapping = os.environ.copy()
    if log_level:
        mapping["LOG_LEVEL"] = log_level
    mapping.setdefault("LOG_LEVEL", "INFO")

    content = template.safe_substitute(mapping)
    logging.config.dictConfig(yaml.safe_load(content))


class VictoriaLogsHandler(logging.Handler):
    """
    Handler that sends logs directly to VictoriaLogs over HTTP.
    On failure, fall back to stderr.
    """

    def __init__(self, url: str, stream_fields: Optional[dict] = None, timeout: float = 0.5):
        super().__init__()
        self.url = url
        self.stream_fields = stream_fields or {}
        self.timeout = timeout

    def emit(self, record: logging.LogRecord):
        try:
            msg = self.formatter.format(record) if self.formatter else record.getMessage()

            try:
                log_entry = json.loads(msg)
            except json.JSONDecodeError:
                log_entry = {"message": msg, "level": record.levelname}

            for k, v in self.stream_fields.items():
                log_entry.setdefault(k, v)

            params = [
                ("_stream_fields", ",".join(self.stream_fields.keys())),
                ("_msg_field", "message"),
                ("_time_field", "_time"),
            ]
            params.extend((k, str(v)) for k, v in self.stream_fields.items())
            full_url = f"{self.url}?{urllib.parse.urlencode(params)}"

            data = json.dumps(log_entry, ensure_ascii=False).encode("utf-8")
            req = urllib.request.Request(
                full_url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )

            try:
                with urllib.request.urlopen(req, timeout=self.timeout) as res:
                    res.read()
            except (OSError, urllib.error.URLError) as e:
                fallback_msg = json.dumps(
                    {
                        "fallback": "victorialogs_failed",
                        "error": str(e),
                        "original_log": log_entry,
                    },
                    ensure_ascii=False,
                )
                stream = getattr(sys, "__stderr__", None) or sys.stderr
                stream.write(fallback_msg + "\n")

        except Exception:
            self.handleError(record)


def configure_queue_logging(service_name: str, vl_url: Optional[str] = None):
    """
    Configure async QueueLogging.
    Returns the started listener, or None when shipping is disabled.
    """
    if not vl_url:
        return None

    if not vl_url.endswith("/insert/jsonline"):
        vl_url = f"{vl_url.rstrip('/')}/insert/jsonline"

    # Real handler for sending (runs on the listener thread).
    real_handler = VictoriaLogsHandler(
        url=vl_url, stream_fields={"container_name": service_name, "job": "services"}
    )
    real_handler.setFormatter(CustomJsonFormatter())

    log_queue: queue.Queue = queue.Queue(-1)
    queue_handler = logging.handlers.QueueHandler(log_queue)

    listener = logging.handlers.QueueListener(log_queue, real_handler)
    listener.start()
    atexit.register(listener.stop)

    logging.getLogger().addHandler(queue_handler)
    return listener


def setup_proxy_logging(app_config) -> None:
    """Initialize logging for the proxy process from its config."""
    setup_logging(app_config.LOG_CONFIG_PATH, app_config.LOG_LEVEL)
    # httpx logs full request URLs, which carry the injected api_key.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    # uvicorn access lines print the raw query string.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    configure_queue_logging(service_name="tmdb-proxy", vl_url=app_config.VICTORIALOGS_URL)
