import logging
from typing import Any

from fastapi import Request, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clinic_backend.middleware.tracing import TRACE_ID_CTX_VAR

logger = logging.getLogger("clinic")


def status_to_code(status_code: int) -> str:
    mapping = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        413: "PAYLOAD_TOO_LARGE",
        415: "UNSUPPORTED_MEDIA_TYPE",
        422: "UNPROCESSABLE_ENTITY",
        500: "INTERNAL_SERVER_ERROR",
    }
    return mapping.get(status_code, f"HTTP_{status_code}")


def error_body(status_code: int, message: str, details: Any = None) -> dict:
    body = {"code": status_to_code(status_code), "message": message, "trace_id": TRACE_ID_CTX_VAR.get()}
    if details is not None:
        body["details"] = details
    return body


async def handle_http_exception(request: Request, exc: HTTPException):
    detail: Any = exc.detail
    message = detail if isinstance(detail, str) else "HTTP error"
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.status_code, message, detail))


async def handle_validation_exception(request: Request, exc: RequestValidationError):
    code = status.HTTP_422_UNPROCESSABLE_ENTITY
    # Only loc/msg/type: echoing "input" back would leak the note text
    details = jsonable_encoder(
        [{k: e.get(k) for k in ("loc", "msg", "type")} for e in exc.errors()]
    )
    return JSONResponse(status_code=code, content=error_body(code, "Request validation failed", details))


async def handle_unhandled_exception(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content=error_body(code, "An unexpected error occurred", str(exc)))
