"""
restkit — Logging Setup
========================

What:  Configures process logging with the current request ID on every line.
How:   A stdout StreamHandler on the root logger, plus a filter that copies
       the request ID from `restkit.context` onto each record.
When:  Called once at startup, before `Service.listen()`.

Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s
    Outside a request the ID column shows <missing-request-id>.
"""

import logging
import sys

from restkit.context import current_request_id

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s] %(message)s"


class RequestIDLogFilter(logging.Filter):
    """Adds `request_id` to records that do not already carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = current_request_id()
        return True


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # restkit.access already logs every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
