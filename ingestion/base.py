"""
Import run bookkeeping (audit trail and bulk pipeline state)
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from core.database import async_session_maker
from models.import_run import ImportRun
from models.base import RunType, ImportStatus, PipelineStage
import logging
import uuid

logger = logging.getLogger(__name__)


class ImportRunTracker:
    """
    Record every bulk stage and incremental run in import_runs.

    Responsibilities:
    - Start/complete run records with counts, durations and errors
    - Report the stage the bulk pipeline has reached
    - Detect update files that were already processed

    Each call uses its own short session and commits immediately, so a run
    record survives a failed stage whose own transaction is rolled back.
    """

    def __init__(self, session_factory: async_sessionmaker = async_session_maker):
        self.session_factory = session_factory

    async def start(
        self,
        run_type: RunType,
        stage: Optional[PipelineStage] = None,
        source_path: Optional[str] = None,
        source_mtime: Optional[float] = None,
    ) -> ImportRun:
        """Create a running import_runs row"""
        run = ImportRun(
            run_id=uuid.uuid4(),
            run_type=run_type,
            stage=stage,
            status=ImportStatus.RUNNING,
            started_at=datetime.utcnow(),
            source_path=source_path,
            source_mtime=source_mtime,
        )
        async with self.session_factory() as session:
            session.add(run)
            await session.commit()
            await session.refresh(run)
        return run

    async def complete(
        self,
        run: ImportRun,
        status: ImportStatus,
        stage: Optional[PipelineStage] = None,
        records_processed: int = 0,
        records_created: int = 0,
        records_updated: int = 0,
        records_failed: int = 0,
        error_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ImportRun:
        """Complete a run with statistics"""
        async with self.session_factory() as session:
            stored = await session.get(ImportRun, run.id)
            stored.status = status
            if stage is not None:
                stored.stage = stage
            stored.completed_at = datetime.utcnow()
            stored.duration_seconds = (stored.completed_at - stored.started_at).total_seconds()
            stored.records_processed = records_processed
            stored.records_created = records_created
            stored.records_updated = records_updated
            stored.records_failed = records_failed
            stored.error_message = error_message
            stored.details = details
            await session.commit()
            await session.refresh(stored)
        return stored

    async def current_stage(self) -> PipelineStage:
        """Stage reached by the most recent successful bulk step."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(ImportRun.stage)
                .where(
                    ImportRun.run_type == RunType.BULK,
                    ImportRun.status == ImportStatus.SUCCESS,
                    ImportRun.stage.isnot(None),
                )
                .order_by(ImportRun.started_at.desc(), ImportRun.id.desc())
                .limit(1)
            )
            stage = result.scalar_one_or_none()
        return stage or PipelineStage.NO_SHADOW

    async def already_processed(self, source_path: str, source_mtime: float) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ImportRun.id)
                .where(
                    ImportRun.run_type == RunType.INCREMENTAL,
                    ImportRun.source_path == source_path,
                    ImportRun.source_mtime == source_mtime,
                    ImportRun.status.in_([ImportStatus.SUCCESS, ImportStatus.PARTIAL]),
                )
                .limit(1)
            )
            return result.scalar_one_or_none() is not None

    @staticmethod
    async def recent_runs(session: AsyncSession, limit: int = 10) -> List[ImportRun]:
        result = await session.execute(
            select(ImportRun).order_by(ImportRun.started_at.desc()).limit(limit)
        )
        return list(result.scalars().all())
