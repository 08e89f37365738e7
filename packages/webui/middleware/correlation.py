"""
Correlation ID middleware for request tracing.

Each request gets an ID (taken from the ``X-Correlation-ID`` header when it is
a valid UUID, generated otherwise). The ID lives in a context variable for the
lifetime of the request, is stamped onto every log record by
``CorrelationIdFilter`` and is echoed back in the response header, so one
import can be followed through plugin, provisioning and storage logs.
"""

import logging
import uuid
from contextvars import ContextVar

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

CORRELATION_HEADER = "X-Correlation-ID"

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)


class CorrelationIdFilter(logging.Filter):
    """Logging filter to inject correlation ID into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        return True


def get_correlation_id() -> str | None:
    return correlation_id_var.get()


def _valid_uuid(value: str | None) -> str | None:
    if not value:
        return None
    try:
        uuid.UUID(value)
    except ValueError:
        logger.warning("Invalid correlation ID format received: %r", value)
        return None
    return value


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation ID to each request and logs its outcome."""

    def __init__(self, app: ASGIApp, header_name: str = CORRELATION_HEADER) -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        correlation_id = _valid_uuid(request.headers.get(self.header_name)) or str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        try:
            logger.debug("Incoming %s %s", request.method, request.url.path)
            response = await call_next(request)
            response.headers[self.header_name] = correlation_id
            logger.info("%s %s -> %d", request.method, request.url.path, response.status_code)
            return response
        except Exception:
            logger.error("Request %s %s failed", request.method, request.url.path, exc_info=True)
            raise
        finally:
            correlation_id_var.reset(token)


def configure_logging_with_correlation(level: str = "INFO") -> None:
    """Install the correlation filter and format on the root logger's handlers.

    Called once during application startup.
    """
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level)
    root_logger.setLevel(level)

    correlation_filter = CorrelationIdFilter()
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] - %(message)s")
    for handler in root_logger.handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(correlation_filter)
        handler.setFormatter(formatter)
