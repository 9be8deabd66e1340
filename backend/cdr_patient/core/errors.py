"""
Registry error taxonomy and the FastAPI handlers that turn it into responses.

Services raise these; routers never translate them by hand.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class NotFoundError(RegistryError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, field: str, value):
        self.entity = entity
        self.field = field
        self.value = str(value)
        super().__init__(f"{entity} with {field} of '{self.value}' not found")


class ConflictError(RegistryError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(ConflictError):
    pass


class AlreadyEnrolledError(ConflictError):
    def __init__(self, patient_id: int, program_id: int):
        self.patient_id = patient_id
        self.program_id = program_id
        super().__init__(f"Patient {patient_id} already enrolled in program {program_id}")


class RecordValidationError(RegistryError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))


class ExternalServiceError(RegistryError):
    status_code = status.HTTP_502_BAD_GATEWAY


class DataIntegrityError(RegistryError):
    """An invariant that storage should make impossible was observed on read."""


def _error_body(request: Request, status_code: int, message: str, errors: Optional[Dict[str, str]] = None) -> dict:
    body = {
        "error_code": status_code,
        "api_path": request.url.path,
        "error_message": message,
        "error_time": datetime.utcnow().isoformat(),
    }
    if errors:
        body["errors"] = errors
    return body


async def registry_error_handler(request: Request, exc: RegistryError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    errors = exc.errors if isinstance(exc, RecordValidationError) else None
    body = _error_body(request, exc.status_code, str(exc), errors)
    if isinstance(exc, NotFoundError):
        body.update(entity=exc.entity, field=exc.field, value=exc.value)
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body"
        errors[field] = err.get("msg", "invalid value")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(request, status.HTTP_400_BAD_REQUEST, "Validation failed", errors),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RegistryError, registry_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
