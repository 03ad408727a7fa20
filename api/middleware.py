"""FastAPI middleware for logging and error handling."""
import time
import uuid
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from logging_config import get_logger, bind_context, clear_context

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log every API request with a request ID and its duration.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        bind_context(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        logger.info(
            "Request started",
            query=str(request.query_params) if request.query_params else None,
        )

        start_time = time.time()

        try:
            response = await call_next(request)

            duration_ms = (time.time() - start_time) * 1000
            response.headers["X-Request-ID"] = request_id

            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            return response

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000

            logger.error(
                "Request failed",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration_ms, 2),
                exc_info=True,
            )

            raise

        finally:
            clear_context()


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Last-resort handler: unexpected exceptions become a generic 500.

    Domain exceptions never reach this point; they are mapped to status
    codes by the application's exception handler.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)

        except Exception as e:
            logger.error(
                "Unhandled exception",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )

            return JSONResponse(
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "InternalServerError",
                    "category": "internal",
                    "message": "An unexpected error occurred. Please contact support.",
                    "detail": None,
                }
            )


def setup_middleware(app) -> None:
    """
    Add all middleware to FastAPI app.

    Args:
        app: FastAPI application instance
    """
    # Last added runs first
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    logger.info("Middleware configured")
