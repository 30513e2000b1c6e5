"""
Health check endpoint with database connectivity and data health checks
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from api.dependencies import get_db
from schemas.api import HealthCheckResponse
from ingestion.health import HealthReporter
from datetime import datetime
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint.

    Returns:
    - Database connectivity status
    - Count thresholds and integrity checks over the provider tables
    - Data quality issues worth an operator's attention
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database connection failed: {str(e)}")
        return HealthCheckResponse(status="unhealthy", database_connected=False)

    reporter = HealthReporter(db)
    try:
        report = await reporter.verify_import_health()
        issues = await reporter.find_data_quality_issues()
    except Exception as e:
        logger.error(f"Health checks failed to run: {str(e)}")
        return HealthCheckResponse(
            status="unhealthy",
            database_connected=True,
            summary=f"Health checks could not run: {type(e).__name__}",
        )

    return HealthCheckResponse(
        status=report["status"],
        timestamp=datetime.utcnow(),
        database_connected=True,
        checks=report["checks"],
        summary=report["summary"],
        data_quality_issues=issues,
    )
