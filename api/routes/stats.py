"""
Registry statistics and import run history endpoint
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from api.dependencies import get_db
from schemas.api import StatsResponse, ImportRunSummary
from ingestion.base import ImportRunTracker
from ingestion.health import HealthReporter
from models.import_run import ImportRun
from models.base import RunType, ImportStatus
import uuid
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Statistics"])


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    limit: int = Query(10, ge=1, le=100, description="Number of recent runs to return"),
    db: AsyncSession = Depends(get_db)
):
    """
    Get registry statistics.

    Returns:
    - Row counts for the provider and reference tables
    - Providers per practice state and most common taxonomies
    - Current bulk pipeline stage and recent import runs
    """
    request_id = f"req_{uuid.uuid4().hex[:12]}"
    logger.info(f"[{request_id}] GET /stats")

    reporter = HealthReporter(db)
    counts = await reporter.data_counts()
    by_state = await reporter.providers_by_state()
    top_taxonomies = await reporter.providers_by_taxonomy()

    # ========== Import runs ==========

    stage_result = await db.execute(
        select(ImportRun.stage)
        .where(
            ImportRun.run_type == RunType.BULK,
            ImportRun.status == ImportStatus.SUCCESS,
            ImportRun.stage.isnot(None),
        )
        .order_by(ImportRun.started_at.desc(), ImportRun.id.desc())
        .limit(1)
    )
    stage = stage_result.scalar_one_or_none()

    last_success = {}
    for run_type in (RunType.BULK, RunType.INCREMENTAL):
        result = await db.execute(
            select(func.max(ImportRun.completed_at)).where(
                ImportRun.run_type == run_type,
                ImportRun.status.in_([ImportStatus.SUCCESS, ImportStatus.PARTIAL]),
            )
        )
        last_success[run_type] = result.scalar()

    runs = await ImportRunTracker.recent_runs(db, limit)

    return StatsResponse(
        counts=counts,
        providers_by_state=[row for row in by_state if row["provider_count"]],
        top_taxonomies=top_taxonomies,
        pipeline_stage=stage.value if stage else None,
        recent_runs=[ImportRunSummary.from_orm(run) for run in runs],
        last_bulk_success=last_success[RunType.BULK],
        last_update_success=last_success[RunType.INCREMENTAL],
    )
