import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from salon.core.logger import logger


class ErrorResponse(BaseModel):
    success: bool = False
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AppException(Exception):
    """Request-scoped error carrying everything needed to answer the caller.

    - code: stable machine-readable identifier (e.g. SLOT_UNAVAILABLE)
    - status_code: HTTP status returned at the API boundary
    - message: text shown to the user
    - details: extra structured context (field errors, ids)
    - log_level: stdlib level the handler logs at
    """

    code = "APP_ERROR"
    status_code = 500
    default_message = "Something went wrong."
    log_level = logging.ERROR

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details or {}
        if code:
            self.code = code

    def to_response(self) -> JSONResponse:
        payload = ErrorResponse(code=self.code, message=self.message, details=self.details or None)
        return JSONResponse(status_code=self.status_code, content=jsonable_encoder(payload))


class ValidationError(AppException):
    """Malformed or missing input. `fields` maps field name to a message."""

    code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "The submitted data is invalid."
    log_level = logging.INFO

    def __init__(self, fields: Dict[str, str], message: Optional[str] = None):
        self.fields = fields
        super().__init__(message, details={"fields": fields})


class NotFound(AppException):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "The requested resource does not exist."
    log_level = logging.INFO


class SlotUnavailable(AppException):
    code = "SLOT_UNAVAILABLE"
    status_code = 409
    default_message = "This time is no longer available. Please choose another time."
    log_level = logging.WARNING


class PersistenceError(AppException):
    code = "PERSISTENCE_ERROR"
    status_code = 503
    default_message = "We could not save your request. Please try again."
    log_level = logging.ERROR


class Forbidden(AppException):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Access denied."
    log_level = logging.WARNING


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppException)
    async def handle_app_exception(request: Request, exc: AppException):
        level = logging.getLevelName(exc.log_level)
        logger.log(level, f"{exc.code}: {exc.message} | path={request.url.path}")
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info(f"Request validation failed on {request.url.path}: {exc.errors()}")
        fields = {}
        for error in exc.errors():
            loc = [str(part) for part in error.get("loc", []) if part not in ("body", "query", "path")]
            fields[".".join(loc) or "request"] = error.get("msg", "Invalid value")
        payload = ErrorResponse(
            code=ValidationError.code,
            message=ValidationError.default_message,
            details={"fields": fields},
        )
        return JSONResponse(status_code=422, content=jsonable_encoder(payload))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(f"🔥 UNHANDLED ERROR on {request.url.path}: {exc}\n{traceback.format_exc()}")
        payload = ErrorResponse(
            code="INTERNAL_SERVER_ERROR",
            message="An unexpected error occurred. Please contact support.",
        )
        return JSONResponse(status_code=500, content=jsonable_encoder(payload))
