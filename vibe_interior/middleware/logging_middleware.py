"""
Request tracing for selection and match calls.

Every request gets an id (an incoming X-Request-ID is reused so the mobile
client can correlate its own logs). RequestContextFilter copies the id onto
every log record, so engine and vision-service lines emitted while serving a
request carry it without passing it around.
"""
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger(__name__)


def get_request_id() -> str:
    """Get the current request ID from context."""
    return request_id_var.get()


class RequestContextFilter(logging.Filter):
    """Stamps log records with the current request id ("-" outside a request)"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request id and logs each API call with its outcome and timing.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        token = request_id_var.set(request_id)

        path = request.url.path
        start_time = time.time()
        logger.info(f"→ {request.method} {path}", extra={"method": request.method, "path": path})

        try:
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000

            log_level = logging.INFO if response.status_code < 400 else logging.WARNING
            logger.log(
                log_level,
                f"← {request.method} {path} {response.status_code} ({duration_ms:.0f}ms)",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(f"✗ {request.method} {path} failed: {str(e)[:100]} ({duration_ms:.0f}ms)", exc_info=True)
            raise
        finally:
            request_id_var.reset(token)
