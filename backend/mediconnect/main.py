from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pathlib import Path
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
from loguru import logger
import sys

from mediconnect.config import settings
from mediconnect.api.v1 import auth, doctor, health, patient
from mediconnect.core.database import init_db
from mediconnect.core.errors import MediConnectError
from mediconnect.core.storage import LocalStorageClient, storage_client
from mediconnect.utils.prometheus_metrics import metrics

# Configure logging
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO" if not settings.debug else "DEBUG"
)

# Create FastAPI app
app = FastAPI(
    title="MediConnect API",
    description="Telemedicine backend: accounts, consultations and digital prescriptions",
    version=health.VERSION,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None
)

# Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    try:
        response = await call_next(request)
        process_time = time.time() - start_time

        # Add timing header
        response.headers["X-Process-Time"] = str(process_time)

        # Record metrics
        metrics.record_request(
            method=request.method,
            endpoint=request.url.path,
            status_code=str(response.status_code),
            duration=process_time
        )

        return response

    except Exception as e:
        process_time = time.time() - start_time

        # Record error metrics
        metrics.record_request(
            method=request.method,
            endpoint=request.url.path,
            status_code="500",
            duration=process_time
        )

        logger.error(f"Request failed: {request.method} {request.url.path} - {str(e)}")
        raise

# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info("Starting MediConnect API server...")

    try:
        init_db()
        logger.info("MediConnect API server started successfully")

    except Exception as e:
        logger.error(f"Failed to initialize services: {e}")
        raise

# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down MediConnect API server...")

def _error_body(request: Request, status_code: int, message) -> dict:
    return {
        "error": True,
        "message": message,
        "status_code": status_code,
        "path": request.url.path
    }

def _format_validation_errors(errors) -> str:
    parts = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)

# Exception handlers
@app.exception_handler(MediConnectError)
async def domain_exception_handler(request: Request, exc: MediConnectError):
    """Handle domain errors raised by services and guards"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.message)
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing input is a 400, not FastAPI's default 422"""
    return JSONResponse(
        status_code=400,
        content=_error_body(request, 400, _format_validation_errors(exc.errors()))
    )

@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content=_error_body(request, 400, _format_validation_errors(exc.errors()))
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.detail)
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {str(exc)}")

    return JSONResponse(
        status_code=500,
        content=_error_body(
            request,
            500,
            "Internal server error" if settings.environment == "production" else str(exc)
        )
    )

# Include routers
app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(auth.router, prefix="/api", tags=["Auth"])
app.include_router(doctor.router, prefix="/api", tags=["Doctor"])
app.include_router(patient.router, prefix="/api", tags=["Patient"])

# Profile pictures and locally stored prescriptions
Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

if storage_client.provider == LocalStorageClient.provider:
    Path(settings.storage_path).mkdir(parents=True, exist_ok=True)
    app.mount("/storage", StaticFiles(directory=settings.storage_path), name="storage")

# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "MediConnect API is running...",
        "version": health.VERSION,
        "docs": "/docs" if settings.debug else "disabled",
        "health": "/api/health"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mediconnect.main:app",
        host="0.0.0.0",
        port=5000,
        reload=settings.debug,
        log_level="info"
    )
