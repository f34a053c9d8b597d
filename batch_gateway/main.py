from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import time

import structlog

from batch_gateway.config import settings
from batch_gateway.core.exceptions import BatchAPIException
from batch_gateway.core.logging import configure_logging
from batch_gateway.api.v1 import router as api_v1_router
from batch_gateway.utils.response import error_response, exception_response


logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info("Batch gateway started", base_path=settings.BATCH_BASE_PATH)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Executes batches of HTTP operations against a backing service in a single request",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add X-Process-Time header to responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(BatchAPIException)
async def batch_exception_handler(request: Request, exc: BatchAPIException):
    """Handle gateway API exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exception_response(exc),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled error", path=request.url.path, error=str(exc), exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=error_response(
            "Server Error",
            "An unexpected error occurred. Please try again later. If the problem persists, contact support.",
            "server_error",
        ),
    )


# Include API routers
app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Batch Gateway API",
        "docs": "/docs",
        "api_version": "1.0",
        "batch": f"{settings.API_V1_PREFIX}/batch",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
