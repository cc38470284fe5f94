# slotbook/core/middleware.py
"""Custom middleware and exception handlers for request handling"""
import uuid
import time
import logging
from starlette.requests import Request
from fastapi.responses import JSONResponse

from slotbook.core.exceptions import SchedulingError

logger = logging.getLogger(__name__)


async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to all requests for tracing"""
    correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = correlation_id
    return response


async def request_logging_middleware(request: Request, call_next):
    """Log all incoming requests"""
    start_time = time.time()
    correlation_id = getattr(request.state, "correlation_id", "unknown")

    logger.info(
        "Request started",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "url": str(request.url),
            "client": request.client.host if request.client else "unknown",
        }
    )

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        "Request completed",
        extra={
            "correlation_id": correlation_id,
            "method": request.method,
            "url": str(request.url),
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2),
        }
    )

    return response


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Render domain errors with the status code their type carries"""
    correlation_id = getattr(request.state, "correlation_id", "unknown")
    log = logger.info if exc.status_code < 500 else logger.error
    log(
        f"{exc.error_type}: {exc.message}",
        extra={"correlation_id": correlation_id, "url": str(request.url)},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
