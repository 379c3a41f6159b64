"""
Service-level error taxonomy and the FastAPI handlers that map it to HTTP.
Services raise these; routes let them propagate to the handlers registered in create_app().
"""
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ParkHubError(Exception):
    error_code: str = "PARKHUB_ERROR"
    status_code: int = 400

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class NotFoundError(ParkHubError):
    error_code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            {"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ValidationError(ParkHubError):
    error_code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Validation failed for '{field}': {reason}", {"field": field})


class ConflictError(ParkHubError):
    error_code = "CONFLICT"
    status_code = 409

    def __init__(self, reason: str, **context: Any):
        self.reason = reason
        super().__init__(f"Conflict: {reason}", context)


class TransactionFailure(ParkHubError):
    """Database failure inside a multi-statement transaction (already rolled back)."""

    error_code = "TRANSACTION_FAILED"
    status_code = 500

    def __init__(self, operation: str, **context: Any):
        self.operation = operation
        super().__init__(f"{operation} failed and was rolled back", context)


async def parkhub_error_handler(request: Request, exc: ParkHubError) -> JSONResponse:
    log = structlog.get_logger()
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, error_code=exc.error_code, error=str(exc))
    else:
        log.info("request_rejected", path=request.url.path, error_code=exc.error_code, error=str(exc))
    # context goes to the log only
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error_code": exc.error_code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ParkHubError, parkhub_error_handler)  # type: ignore[arg-type]
