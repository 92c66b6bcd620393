import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)


def error_payload(code: str, message: str, details=None) -> dict:
    return {"code": code, "message": message, "details": details}


def http_error_payload(exc: HTTPException) -> dict:
    detail = exc.detail
    if isinstance(detail, dict):
        return error_payload(
            detail.get("code", f"http_{exc.status_code}"),
            detail.get("message", "Request failed"),
            detail.get("details"),
        )
    if isinstance(detail, str):
        return error_payload(f"http_{exc.status_code}", detail)
    return error_payload(f"http_{exc.status_code}", "Request failed", detail)


def register_error_handlers(app) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content=http_error_payload(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        # ctx can hold raw exception objects
        errors = [
            {k: str(v) if k == "ctx" else v for k, v in err.items()}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content=error_payload("validation_error", "Validation error", errors),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning("Constraint violation on %s: %s", request.url.path, exc.orig)
        return JSONResponse(
            status_code=409,
            content=error_payload("conflict", "Conflicting compliance record"),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_payload("internal_error", "Internal server error"),
        )
