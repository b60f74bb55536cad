"""Request logging middleware."""

import time
import uuid

from fastapi import Request

from trashmap.utils.logger import get_logger, set_request_id

log = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def logging_middleware(request: Request, call_next):
    """Tag each request with an ID and log its outcome and duration."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    set_request_id(request_id)
    start = time.perf_counter()

    log.debug("request started", method=request.method, path=request.url.path)
    try:
        response = await call_next(request)
    finally:
        set_request_id(None)

    duration_ms = round((time.perf_counter() - start) * 1000, 2)
    log.info(
        "request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
        request_id=request_id,
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response
