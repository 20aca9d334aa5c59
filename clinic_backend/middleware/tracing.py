import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

TRACE_ID_CTX_VAR: ContextVar[str] = ContextVar("trace_id", default="")
TRACE_HEADER = "x-trace-id"


class TracingMiddleware(BaseHTTPMiddleware):
    """
    Assign a trace_id to every request (reusing the caller's x-trace-id when
    sent) and echo it on the response. The id is also kept in a context
    variable so log records and error envelopes can carry it.
    """
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = (request.headers.get(TRACE_HEADER) or "").strip()[:64] or str(uuid.uuid4())
        TRACE_ID_CTX_VAR.set(trace_id)
        request.state.trace_id = trace_id

        response = await call_next(request)

        # Propagate trace id to client; header names are case-insensitive
        response.headers[TRACE_HEADER] = trace_id
        return response


class TraceIdFilter(logging.Filter):
    """Attach the current trace_id to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = TRACE_ID_CTX_VAR.get()
        return True
