"""
FastAPI application entry point.
"""

import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from moneybook.api import uploads
from moneybook.api.router import api_router
from moneybook.config import settings
from moneybook.database import init_db
from moneybook.exceptions import AppError, StoreUnavailable
from moneybook.schemas.common import ErrorDetail, ErrorResponse

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        init_db()
    yield


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=VERSION,
    description="Personal finance bookkeeping API: categories, income/expense transactions and reports",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_body(message: str, errors=None) -> dict:
    return ErrorResponse(message=message, errors=errors or []).model_dump()


def format_validation_errors(exc: RequestValidationError) -> list:
    """Flatten pydantic errors into ``{field, message}`` pairs, one per violation."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append(ErrorDetail(field=".".join(loc) or None, message=message).model_dump())
    return errors


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.errors),
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content=error_body("Validation failed", format_validation_errors(exc)),
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = f"Route not found - {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(OperationalError)
@app.exception_handler(PoolTimeoutError)
async def store_unavailable_handler(request: Request, exc: Exception):
    logger.error(f"Database unavailable on {request.method} {request.url.path}: {exc}")
    error = StoreUnavailable()
    return JSONResponse(status_code=error.status_code, content=error_body(error.message))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=409, content=error_body("Duplicate entry or constraint violation"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    content = error_body("Internal Server Error")
    if settings.is_development:
        content["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)
    return JSONResponse(status_code=500, content=content)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    if settings.is_development:
        logger.info(f"{request.method} {request.url.path} -> {response.status_code}")
    return response


# Include API router
app.include_router(api_router, prefix="/api")
app.include_router(uploads.router)


@app.get("/")
def read_root():
    """Root endpoint."""
    return {
        "success": True,
        "message": f"Welcome to {settings.app_name} API",
        "version": VERSION,
        "documentation": "/api",
        "health": "/api/health",
    }


@app.get("/api")
def api_info():
    return {
        "success": True,
        "message": f"{settings.app_name} API",
        "version": VERSION,
        "endpoints": {
            "auth": "/api/auth",
            "categories": "/api/categories",
            "transactions": "/api/transactions",
            "dashboard": "/api/dashboard",
            "health": "/api/health",
        },
    }


@app.get("/api/health")
def health_check():
    """Health check endpoint."""
    return {
        "success": True,
        "message": "API is running successfully",
        "status": "ok",
        "app_name": settings.app_name,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
