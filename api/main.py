"""FastAPI main application."""
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import get_settings
from exceptions import (
    AuthError,
    BackendAPIError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    PreconditionError,
    RentalAdminException,
    TransientError,
    ValidationError,
)
from logging_config import get_logger, setup_logging
from api.middleware import setup_middleware
from api.routes import bookings, charges, devices, health, invoices
from services.busy_guard import BookingBusyRegistry

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    setup_logging()
    logger.info("Starting rental admin API", environment=settings.app_env)

    for problem in settings.validate_required_settings():
        logger.warning("Configuration problem", problem=problem)

    app.state.busy_registry = BookingBusyRegistry()

    yield

    logger.info("Shutting down rental admin API")


app = FastAPI(
    title="Bike Rental Admin",
    description="Booking charges, status transitions and invoices for the bike rental backend",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
setup_middleware(app)


def status_code_for(exc: RentalAdminException) -> int:
    """HTTP status for a domain exception."""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthError):
        return 403 if exc.status_code == 403 else 401
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (ConflictError, PreconditionError)):
        return 409
    if isinstance(exc, TransientError):
        return 503
    if isinstance(exc, ConfigurationError):
        return 500
    if isinstance(exc, BackendAPIError) and exc.status_code and 400 <= exc.status_code < 500:
        return exc.status_code
    return 502


@app.exception_handler(RentalAdminException)
async def rental_admin_exception_handler(request: Request, exc: RentalAdminException):
    """Map domain exceptions onto status codes with their corrective category."""
    status_code = status_code_for(exc)
    logger.warning(
        "Request rejected",
        error_type=type(exc).__name__,
        category=exc.category,
        status_code=status_code,
        error=exc.message,
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": type(exc).__name__,
            "category": exc.category,
            "message": exc.message,
            "detail": exc.detail or None,
        },
    )


app.include_router(health.router, tags=["Health"])
app.include_router(bookings.router, prefix="/api", tags=["Bookings"])
app.include_router(charges.router, prefix="/api", tags=["Additional Charges"])
app.include_router(invoices.router, prefix="/api", tags=["Invoices"])
app.include_router(devices.router, prefix="/api", tags=["Devices"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Bike Rental Admin",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
