"""Per-request correlation id and access log line.

Every request gets an id: the caller's X-Request-ID when present,
otherwise a fresh UUID4.  It is echoed on the response and stamped on
every log record emitted while the request is handled, so a learner's
"could not save your progress" can be traced to the failed write.

The access line is logged at a level that follows the status: 5xx at
ERROR, 4xx at WARNING, everything else at INFO.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# ContextVar, not threading.local: requests interleave on one event loop.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


def _stamp_request_id(factory):
    def make_record(*args, **kwargs) -> logging.LogRecord:
        record = factory(*args, **kwargs)
        record.request_id = request_id_var.get()
        return record

    make_record.stamps_request_id = True  # type: ignore[attr-defined]
    return make_record


def install_request_id_factory() -> None:
    """Stamp request_id on every LogRecord, whichever logger creates it.

    Logger filters never see records propagated from child loggers, so
    the id is attached at record creation.  Idempotent.
    """
    current = logging.getLogRecordFactory()
    if not getattr(current, "stamps_request_id", False):
        logging.setLogRecordFactory(_stamp_request_id(current))


install_request_id_factory()


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started) * 1000, 1)
            logger.log(
                _level_for(response.status_code),
                "%s %s %d %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)
