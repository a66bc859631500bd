"""
quizguard Monitoring Service - FastAPI Application
"""
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .proctor.api import router as monitor_router
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Integrity monitoring for timed quiz attempts",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None
)


# ============================================================================
# Request Logging Middleware
# ============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing."""
    start = time.time()
    method = request.method
    path = request.url.path

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(f"RequestError {method} {path}: {e}", exc_info=True)
        raise

    if path not in ["/health", "/favicon.ico"]:
        duration_ms = int((time.time() - start) * 1000)
        logger.info(f"{method} {path} -> {response.status_code} in {duration_ms}ms")

    return response


# Note: When using allow_origins=["*"], credentials must be False
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(monitor_router)


@app.on_event("startup")
async def startup_event():
    """Configure logging and report the monitoring policy."""
    setup_logging(
        service_name="quizguard",
        level=settings.LOG_LEVEL,
        log_to_file=settings.LOG_TO_FILE,
        log_dir=settings.LOG_DIR
    )
    logger.info(f"{settings.APP_NAME} starting on port {settings.PORT}")
    logger.info(
        f"Policy: suppression={settings.SUPPRESSION_WINDOW_MS}ms "
        f"fast_answer={settings.FAST_ANSWER_THRESHOLD} in {settings.FAST_ANSWER_WINDOW_MS}ms "
        f"tick={settings.TICK_INTERVAL_MS}ms"
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": __version__
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.APP_NAME,
        "docs": "/docs" if settings.DEBUG else "Disabled in production"
    }
