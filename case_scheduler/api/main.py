"""
FastAPI application for Case Scheduler.

This is the main entry point for the HTTP API, providing:
- Event-request negotiation endpoints
- Health and status endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from case_scheduler import __version__
from case_scheduler.api.dependencies import init_negotiation_service
from case_scheduler.api.middleware import RequestLoggingMiddleware
from case_scheduler.api.models import HealthResponse
from case_scheduler.api.routes import router as event_requests_router
from case_scheduler.config import configure_logging, get_settings
from case_scheduler.database import check_connection
from case_scheduler.exceptions import SchedulingError

logger = logging.getLogger(__name__)

API_VERSION = __version__


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    configure_logging()
    logger.info("Starting Case Scheduler API")
    init_negotiation_service()
    logger.info("Case Scheduler API started")

    yield

    # Shutdown
    logger.info("Shutting down Case Scheduler API")


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Case Scheduler API",
    description="""
# Case Scheduler API

Appointment negotiation between providers (law firms, medical providers)
and their clients or patients.

## Negotiation Workflows

### Individual proposes dates
1. **POST /event-requests** - Provider opens a request without dates (`pending`)
2. **POST /event-requests/{id}/propose-dates** - Individual submits 3 dates (`dates_submitted`)
3. **POST /event-requests/{id}/confirm** - Provider confirms one (`confirmed`)

### Provider offers dates
1. **POST /event-requests** - Provider opens a request with `proposedDates` (`dates_offered`)
2. **POST /event-requests/{id}/select-date** - Individual picks one (`confirmed`)

Confirmation creates a calendar entry for each side and shares it with
the individual's other connected providers.

## Identity

Every request carries `X-User-ID` and `X-User-Role` headers
(`law_firm`, `medical_provider`, `client`/`patient`/`individual`).

## Error Handling

All errors return `{"error_type", "message", "retryable"}`:

- **400** - Invalid request data
- **401** - Missing or malformed caller identity
- **403** - Access denied
- **404** - Event request or proposed date not found
- **409** - Action not allowed in the current status
- **422** - Malformed request body
- **500** - Server error
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add middleware
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(event_requests_router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(SchedulingError)
async def scheduling_exception_handler(request, exc: SchedulingError):
    """Map negotiation errors to their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_type}: {exc.message}", exc_info=exc.original_error)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_type": exc.error_type,
            "message": exc.message,
            "retryable": exc.retryable,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    """Report malformed request bodies, headers and query strings in the common envelope."""
    message = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.warning(f"Validation error for {request.url.path}: {message}")
    return JSONResponse(
        status_code=422,
        content={
            "error_type": "request_validation_error",
            "message": message or "Invalid request",
            "retryable": False,
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_type": "http_error",
            "message": exc.detail,
            "retryable": exc.status_code >= 500,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_type": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )


# =============================================================================
# Health & Status Endpoints
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
async def health_check():
    """
    Check API health status.

    Returns:
        Health status including database connectivity
    """
    database_connected = await check_connection()

    return HealthResponse(
        status="healthy" if database_connected else "unhealthy",
        version=API_VERSION,
        database_connected=database_connected,
    )


def run_server(host: str | None = None, port: int | None = None, reload: bool | None = None):
    """Run the API server with Uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "case_scheduler.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=settings.api_reload if reload is None else reload,
    )


if __name__ == "__main__":
    run_server()
