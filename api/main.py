"""
Pinrank Admin API

FastAPI application for the competitor keyword dashboard:
1. Registers competitor domains
2. Imports sitemaps and keyword-ranking exports
3. Serves keyword, pin and slug reports

Run:
    uvicorn api.main:app --reload
"""

import logging
import sys
from datetime import datetime

from dotenv import load_dotenv

# DATABASE_URL and friends are read with os.getenv, so .env must be loaded first
load_dotenv()

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src import __version__
from src.auth.dependencies import require_admin
from src.database import check_db_connection, get_db_info, init_db
from src.utils.config import get_settings

from api import analysis, auth, domains, keywords, reports, settings, sitemap

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,  # Override any existing config
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

# Create FastAPI app
app = FastAPI(
    title="Pinrank Competitor Tracker",
    description="Competitor keyword rankings, sitemaps and slug analysis",
    version=__version__,
)

app.include_router(auth.router)
app.include_router(domains.router)
app.include_router(keywords.router)
app.include_router(sitemap.router)
app.include_router(analysis.router)
app.include_router(reports.router)
app.include_router(settings.router)


# ============================================================================
# STARTUP - Initialize Database
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    init_db()
    if check_db_connection():
        logger.info("Database connection verified")
    else:
        logger.warning("Database connection check failed - continuing anyway")


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and parameters are client errors (400)."""
    logger.info(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_errors(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Pinrank Competitor Tracker"}


@app.get("/api/health")
async def health():
    """Detailed health check including database status."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "database": "connected" if check_db_connection() else "disconnected",
    }


@app.get("/api/database", dependencies=[Depends(require_admin)])
async def database_status():
    """Database type, masked URL and table list for debugging deployments."""
    return get_db_info()


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
