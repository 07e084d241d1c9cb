from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone

from google.cloud import logging as cloud_logging

SERVICE_NAME = "section-orchestrator"
TRACE_HEADER = "X-Cloud-Trace-Context"

# Context variable for trace ID
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, in the shape Cloud Logging ingests from stdout.

    With a ``project_id`` the trace is written as the fully qualified
    ``projects/<id>/traces/<trace>`` resource so entries group under the
    request in the Cloud console.
    """

    def __init__(self, *, project_id: str | None = None, service: str = SERVICE_NAME) -> None:
        super().__init__()
        self.project_id = project_id
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "serviceContext": {"service": self.service},
            "logging.googleapis.com/sourceLocation": {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        trace_id = trace_id_var.get()
        if trace_id:
            log_obj["logging.googleapis.com/trace"] = self._trace_resource(trace_id)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_obj[key] = value

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str)

    def _trace_resource(self, trace_id: str) -> str:
        if self.project_id:
            return f"projects/{self.project_id}/traces/{trace_id}"
        return trace_id


def setup_logging(
    *,
    environment: str = "dev",
    project_id: str | None = None,
    use_cloud_logging: bool = True,
) -> None:
    """Configure logging for the service.

    Args:
        environment: Environment name (dev, staging, prod)
        project_id: GCP project ID for Cloud Logging and trace resources
        use_cloud_logging: Whether to use Cloud Logging client
    """
    log_level = logging.DEBUG if environment == "dev" else logging.INFO

    if use_cloud_logging and project_id and environment != "dev":
        client = cloud_logging.Client(project=project_id)
        client.setup_logging(log_level=log_level)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter(project_id=project_id))
        logging.basicConfig(level=log_level, handlers=[handler], force=True)

    # Backend SDKs log every request at INFO
    for name in ("google", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def trace_id_from_header(header: str | None) -> str | None:
    """Extract the trace id from an ``X-Cloud-Trace-Context`` value.

    The header looks like ``TRACE_ID/SPAN_ID;o=OPTIONS``; only the first
    part identifies the request.
    """
    if not header:
        return None
    trace_id = header.split("/", 1)[0].split(";", 1)[0].strip()
    return trace_id or None


def set_trace_id(trace_id: str | None = None) -> str:
    """Bind a trace ID to the current context, generating one when absent."""
    trace_id = trace_id or uuid.uuid4().hex
    trace_id_var.set(trace_id)
    return trace_id


def get_trace_id() -> str | None:
    """Get the trace ID from the current context."""
    return trace_id_var.get()


__all__ = [
    "StructuredFormatter",
    "TRACE_HEADER",
    "get_trace_id",
    "set_trace_id",
    "setup_logging",
    "trace_id_from_header",
]
