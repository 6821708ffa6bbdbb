import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppException(Exception):
    default_code = "bad_request"

    def __init__(self, message: str, status_code: int = 400, code: str | None = None):
        self.message = message
        self.status_code = status_code
        self.code = code or self.default_code
        super().__init__(message)


class AuthError(AppException):
    """Telegram init data was missing, malformed or not signed by our bot."""

    default_code = "unauthorized"

    def __init__(self, code: str, message: str = "Authentication failed"):
        super().__init__(message, status_code=401, code=code)


class NotFoundError(AppException):
    default_code = "not_found"

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class ValidationError(AppException):
    default_code = "validation_error"

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class ConflictError(AppException):
    default_code = "conflict"

    def __init__(self, message: str = "Resource is contended, retry later"):
        super().__init__(message, status_code=409)


class ClaimConflictError(ConflictError):
    default_code = "claim_conflict"

    def __init__(self, message: str = "Claim is contended, retry later"):
        super().__init__(message)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def _app_exception_handler(_: Request, exc: AppException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"ok": False, "error": exc.code, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "ok": False,
                "error": "validation_error",
                "detail": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"ok": False, "error": "internal_error", "message": "Internal server error"},
        )
