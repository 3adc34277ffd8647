"""
Middleware package for the API.
"""
from vibe_interior.middleware.logging_middleware import (
    REQUEST_ID_HEADER,
    RequestContextFilter,
    RequestLoggingMiddleware,
    get_request_id,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestContextFilter",
    "RequestLoggingMiddleware",
    "get_request_id",
]
