"""
Lawwise Directory - Main API Server
FastAPI application for the lawyer/client directory.

Features:
- Lawyer and client accounts with per-account login lockout
- Signed bearer sessions checked against the live account on every request
- Lawyer directory with specialization filter and paginated search
- Connection requests between accounts
- Case records per account
"""
# Force unbuffered output for Windows compatibility
import sys
if hasattr(sys.stdout, 'reconfigure'):
    sys.stdout.reconfigure(line_buffering=True)
    sys.stderr.reconfigure(line_buffering=True)

import os
from dotenv import load_dotenv

# Load environment variables from .env file BEFORE other imports
load_dotenv()

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from config.loader import get_config
from src.utils.structured_logger import setup_structured_logging, get_logger
from src.utils.exceptions import DirectoryError
from src.utils.error_handler import directory_error_handler, log_and_raise

# Configure logging
setup_structured_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    json_output=os.getenv("LOG_FORMAT", "json").lower() == "json",
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    config = get_config()
    logger.info(f"Starting {config.app_name} ({config.environment})...")
    yield
    logger.info("Shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Lawwise Directory API",
    description="Lawyer directory, client accounts and connection requests",
    version="1.0.0",
    lifespan=lifespan
)

# ==================== Middleware Setup ====================
# NOTE: FastAPI middleware runs in REVERSE order of addition.
# Last added = first to process requests. Order matters!

# 1. Request ID middleware - tags every log line of a request
from src.middleware.request_id_middleware import RequestIdMiddleware
app.add_middleware(RequestIdMiddleware)

# 2. CORS middleware - MUST be added LAST so it runs FIRST
# This ensures CORS headers are added to ALL responses including errors
def get_cors_origins() -> list:
    """Get allowed CORS origins from environment or use defaults."""
    env_origins = os.getenv("CORS_ORIGINS", "")
    if env_origins:
        return [origin.strip() for origin in env_origins.split(",") if origin.strip()]

    return [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:3000",
    ]

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# ==================== Health Endpoints ====================

@app.get("/")
async def root():
    """Root endpoint - API info"""
    return {
        "name": "Lawwise Directory",
        "version": "1.0.0",
        "status": "running",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health")
async def health_check():
    """Basic health check endpoint for load balancers"""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/health/ready")
async def readiness_check():
    """
    Readiness check - configuration loads and sessions can be signed.
    Use for Kubernetes readiness probes.
    """
    from src.api.dependencies import get_session_manager

    try:
        config = get_config()
        get_session_manager()
    except Exception as e:
        log_and_raise(503, "checking readiness", e, logger)

    return {
        "status": "ready",
        "environment": config.environment,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health/live")
async def liveness_check():
    """
    Liveness check - verifies the application is running.
    Use for Kubernetes liveness probes.
    """
    return {"status": "alive", "timestamp": datetime.now(timezone.utc).isoformat()}


# ==================== Include All Routers ====================

from src.api.routes import include_routers
from src.api.auth_routes import limiter
include_routers(app)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ==================== Error Handlers ====================

app.add_exception_handler(DirectoryError, directory_error_handler)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"}
    )


# ==================== Run Server ====================

if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8080))
    host = os.getenv("HOST", "127.0.0.1")
    reload = os.getenv("RELOAD", "false").lower() == "true"

    logger.info(f"Starting server on {host}:{port} (reload={reload})")

    uvicorn.run(
        app,
        host=host,
        port=port,
        reload=reload,
        log_level="info"
    )
