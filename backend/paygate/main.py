"""
PayGate Backend - FastAPI Application

Merchant-facing payment gateway: merchant onboarding with admin approval,
API-key authentication, and payment lifecycle with an audit trail.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from .config import settings
from .exceptions import GatewayError
from .db import initialize_database, engine
from .api.admin import router as admin_router
from .api.auth import router as auth_router
from .api.keys import router as keys_router
from .api.merchants import router as merchants_router
from .api.payments import router as payments_router
from .api.transactions import router as transactions_router


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    - Startup: create database tables
    - Shutdown: dispose of the engine's connection pool
    """
    logger.info("Starting PayGate backend server...")

    try:
        await initialize_database()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    logger.info("Server startup complete")

    yield

    logger.info("Shutting down PayGate backend server...")
    await engine.dispose()


app = FastAPI(
    title="PayGate API",
    description="Merchant payment gateway with API-key authentication",
    version=API_VERSION,
    lifespan=lifespan,
)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    """
    Render business-rule failures with their own status code.

    Body format comes from GatewayError.to_dict().
    """
    logger.warning(
        f"{exc.error_code} on {request.url.path}: {exc.message}",
        extra={"details": exc.details}
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle malformed request bodies, paths and query strings.

    Collapses Pydantic's error list into one message per field.
    """
    field_errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body")
        field_errors[field or "body"] = error["msg"]

    logger.warning(f"Request validation failed on {request.url.path}: {field_errors}")

    return JSONResponse(
        status_code=400,
        content={
            "error_code": "VALIDATION_ERROR",
            "message": "Request validation failed",
            "details": {"field_errors": field_errors}
        },
    )


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unexpected errors.

    Logs full exception for debugging but returns generic message to client.
    """
    logger.error(f"Unexpected error: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content={
            "error_code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
            "details": {"error_type": type(exc).__name__} if settings.expose_error_types else {}
        },
    )


# Health check endpoint
@app.get("/api/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        Server status and version information
    """
    return {
        "status": "healthy",
        "version": API_VERSION,
    }


app.include_router(merchants_router, prefix="/api/v1/merchants", tags=["Merchants"])
app.include_router(auth_router, prefix="/api/v1/auth", tags=["Auth"])
app.include_router(admin_router, prefix="/api/v1/admin/merchants", tags=["Admin"])
app.include_router(keys_router, prefix="/api/v1/keys", tags=["API Keys"])
app.include_router(payments_router, prefix="/api/v1/payments", tags=["Payments"])
app.include_router(transactions_router, prefix="/api/v1/transactions", tags=["Transactions"])


def main():
    """CLI entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "paygate.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
