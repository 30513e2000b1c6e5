"""
FastAPI application initialization
"""

from fastapi import FastAPI
from api.routes import health, providers, reference, stats
from core.config import settings
from core.logging import setup_logging
import logging
from api.middleware import RequestContextMiddleware
from ingestion.scheduler import UpdateScheduler

setup_logging()

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="NPPES Provider Registry API",
    description="Read-only search over the NPPES provider registry",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(RequestContextMiddleware)

# Initialize Scheduler
scheduler = UpdateScheduler()


# Include routers
app.include_router(health.router)
app.include_router(providers.router)
app.include_router(reference.router)
app.include_router(stats.router)


@app.on_event("startup")
async def startup_event():
    """Application startup event"""
    logger.info("Starting NPPES Provider Registry API")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Database: {settings.DATABASE_URL.split('@')[1] if '@' in settings.DATABASE_URL else 'configured'}")

    if settings.SCHEDULER_ENABLED:
        scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event"""
    logger.info("Shutting down NPPES Provider Registry API")
    if scheduler.scheduler.running:
        scheduler.stop()


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "NPPES Provider Registry API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "providers": "/providers",
            "taxonomies": "/taxonomies",
            "insurance_plans": "/insurance-plans",
            "insurance_carriers": "/insurance-carriers",
            "provider_networks": "/provider-networks",
            "stats": "/stats"
        }
    }
