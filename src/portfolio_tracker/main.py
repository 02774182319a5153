"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from portfolio_tracker.config.settings import get_settings
from portfolio_tracker.config.logging_config import setup_logging
from portfolio_tracker.repositories.sqlalchemy.database import init_db
from portfolio_tracker.api.deps import reset_dependencies
from portfolio_tracker.api.routers import positions_router, portfolio_router
from portfolio_tracker.core.exceptions import AppError

# Error code -> HTTP status; anything unlisted is a client error
ERROR_STATUS = {
    "VALIDATION_ERROR": 400,
    "NOT_FOUND": 404,
    "CONSOLIDATION_ERROR": 409,
    "REFRESH_ERROR": 503,
    "REFRESH_CANCELLED": 503,
    "REFRESH_TIMEOUT": 504,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    setup_logging()
    init_db()
    yield
    reset_dependencies()


settings = get_settings()

app = FastAPI(
    title=settings.app_name,
    description="Position ledger with consolidated holdings and staleness-driven price refresh",
    version=settings.app_version,
    lifespan=lifespan,
)

app.include_router(positions_router)
app.include_router(portfolio_router)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Global handler for application errors."""
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, 400),
        content={"error": exc.code, "message": exc.message},
    )


@app.get("/health")
def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }
