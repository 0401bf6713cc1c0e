from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import Optional, Union


# Request-scoped values stamped on every log line
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
# Settings owner: the company (or superadmin) whose rows the request reads and writes
tenant_id_var: ContextVar[Optional[str]] = ContextVar("tenant_id", default=None)
workspace_id_var: ContextVar[Optional[str]] = ContextVar("workspace_id", default=None)

LOG_FORMAT = (
    "%(asctime)s | %(levelname)s | %(name)s | cid=%(correlation_id)s | "
    "owner=%(tenant_id)s | ws=%(workspace_id)s | %(message)s"
)


class LoggingContextFilter(logging.Filter):
    """Copy the request contextvars onto the record; '-' outside a request."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.correlation_id = correlation_id_var.get() or "-"
        record.tenant_id = tenant_id_var.get() or "-"
        record.workspace_id = workspace_id_var.get() or "-"
        return True


# PUBLIC_INTERFACE
def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Route all logging to stdout with the settings-owner context.

    Replaces handlers installed earlier (basicConfig, uvicorn defaults on root)
    so each line is written once.
    """
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
    handler.addFilter(LoggingContextFilter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
