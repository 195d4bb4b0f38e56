import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..exceptions import ErrorKind, ShortUrlError, StorageFailureError
from ..schemas import ErrorResponse

logger = logging.getLogger(__name__)

def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    errors: Optional[List[str]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        status=status_code,
        error=error,
        message=message,
        path=request.url.path,
        timestamp=datetime.now(timezone.utc),
        errors=errors or [],
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))

def format_validation_errors(exc: RequestValidationError) -> List[str]:
    issues = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"] if part != "body")
        message = err["msg"]
        if err["type"] == "value_error":
            # Our own validators already name the field
            issues.append(message.removeprefix("Value error, "))
        else:
            issues.append(f"{field}: {message}" if field else message)
    return issues

async def handle_domain_error(request: Request, exc: ShortUrlError):
    if isinstance(exc, StorageFailureError):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
        return error_response(request, exc.status_code, exc.kind.value, "Internal storage error")
    return error_response(request, exc.status_code, exc.kind.value, exc.message, getattr(exc, "errors", None))

async def handle_validation_error(request: Request, exc: RequestValidationError):
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        ErrorKind.INVALID_INPUT.value,
        "Validation failed",
        format_validation_errors(exc),
    )

async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "Internal server error")

def register_error_handlers(app: FastAPI):
    app.add_exception_handler(ShortUrlError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
