"""Main FastAPI application module.

This module initializes the FastAPI application, converts every error into
the JSON envelope and registers all route handlers.
"""

import logging
from datetime import datetime

import pytz
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging_config import setup_logging
from config import (
    API_HOST,
    API_PORT,
    APP_ENV,
    CORS_ALLOWED_ORIGINS,
    UPLOAD_DIR,
    UPLOAD_URL_PREFIX,
)
from api.routes import pengaduan, user_laporan, users
from core.database import dispose_db, init_db
from core.exceptions import PengaduanError
from schemas.common import envelope, error_envelope

# Setup logging
setup_logging()

logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title="Pengaduan Masyarakat API",
    description="Citizen complaint intake and triage service.",
    version="1.0.0",
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route handlers
app.include_router(users.router)
app.include_router(pengaduan.router)
app.include_router(user_laporan.router)

# Uploaded photos, read-only
app.mount(
    UPLOAD_URL_PREFIX,
    StaticFiles(directory=UPLOAD_DIR, check_dir=False),
    name="uploads",
)


@app.on_event("startup")
def startup_tasks() -> None:
    """Create missing tables and the upload directory."""
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    init_db()
    logger.info("Database ready, uploads in %s", UPLOAD_DIR)


@app.on_event("shutdown")
def shutdown_tasks() -> None:
    """Release pooled database connections."""
    dispose_db()
    logger.info("Database connections closed")


@app.exception_handler(PengaduanError)
def handle_pengaduan_error(request: Request, exc: PengaduanError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.message))


@app.exception_handler(StarletteHTTPException)
def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and message == "Not Found":
        message = "Endpoint not found"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(message),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    return JSONResponse(status_code=400, content=error_envelope(message))


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra = {"error": str(exc)} if APP_ENV == "development" else {}
    return JSONResponse(
        status_code=500, content=error_envelope("Internal server error", **extra)
    )


@app.get("/", summary="API root", tags=["Info"])
def root() -> dict:
    """API root, returns API information and documentation links."""
    return envelope(
        "Pengaduan Masyarakat API",
        {
            "version": "1.0.0",
            "docs": {"swagger": "/docs", "redoc": "/redoc"},
            "health": "/api/health",
        },
    )


@app.get("/api/health", summary="Health check", tags=["Health"])
def health() -> dict:
    """Health check endpoint."""
    return envelope(
        "Server is running",
        {"timestamp": datetime.now(pytz.utc).isoformat()},
    )


# --- Startup code for direct execution ---
if __name__ == "__main__":
    import uvicorn

    server_url = f"http://{API_HOST}:{API_PORT}"
    logger.info("Starting Pengaduan API on %s (docs at %s/docs)", server_url, server_url)
    uvicorn.run("app:app", host=API_HOST, port=API_PORT, reload=APP_ENV == "development")
