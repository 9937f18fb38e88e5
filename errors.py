"""
Error responses. Every failure leaves the API as {"error": <message>}.
"""

import logging
import traceback

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from settings import get_settings

logger = logging.getLogger(__name__)


def internal_error(exc: Exception, message: str) -> HTTPException:
    """Log `exc` and build the 500 response for it.

    Call from inside an `except` block. Outside production the body also
    carries the exception text and traceback.
    """
    logger.exception(message)
    if get_settings().is_production:
        return HTTPException(status_code=500, detail=message)
    return HTTPException(
        status_code=500,
        detail={"error": message, "message": str(exc), "stack": traceback.format_exc()},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in exc.errors()]
    logger.warning("Rejected %s %s: invalid fields %s", request.method, request.url.path, fields)
    return JSONResponse(status_code=400, content={"error": "Invalid request", "fields": fields})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    if get_settings().is_production:
        content = {"error": "Server error"}
    else:
        content = {
            "error": "Server error",
            "message": str(exc),
            "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }
    return JSONResponse(status_code=500, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
