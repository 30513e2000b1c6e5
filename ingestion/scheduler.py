import logging
from pathlib import Path
from typing import Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import async_sessionmaker
from core.config import settings
from core.database import async_session_maker
from ingestion.base import ImportRunTracker
from ingestion.runner import NppesUpdateWorker, UpdateSummary

logger = logging.getLogger(__name__)


class UpdateScheduler:
    """
    Weekly NPPES update job.

    Runs the update worker on UPDATE_FEED_PATH on the UPDATE_SCHEDULE_CRON
    schedule, skipping files whose path and mtime already have a successful
    run recorded.
    """

    def __init__(
        self,
        feed_path: Optional[str] = None,
        cron: Optional[str] = None,
        session_factory: async_sessionmaker = async_session_maker,
    ):
        self.scheduler = AsyncIOScheduler()
        self.feed_path = feed_path or settings.UPDATE_FEED_PATH
        self.cron = cron or settings.UPDATE_SCHEDULE_CRON
        self.session_factory = session_factory
        self.tracker = ImportRunTracker(session_factory)

    async def run_update_job(self) -> Optional[UpdateSummary]:
        """Job to apply the current update file"""
        if not self.feed_path:
            logger.warning("Scheduler: UPDATE_FEED_PATH is not set, nothing to do")
            return None

        path = Path(self.feed_path).resolve()
        if not path.exists():
            logger.info(f"Scheduler: no update file at {path}")
            return None

        if await self.tracker.already_processed(str(path), path.stat().st_mtime):
            logger.info(f"Scheduler: {path} already processed, skipping")
            return None

        logger.info(f"Scheduler: starting update from {path}")
        try:
            worker = NppesUpdateWorker(self.session_factory, tracker=self.tracker)
            summary = await worker.perform(str(path))
        except Exception as e:
            logger.error(f"Scheduler: update job failed - {e}")
            return None

        logger.info(
            f"Scheduler: update finished ({summary.created} created, "
            f"{summary.updated} updated, {summary.errors} errors)"
        )
        return summary

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_update_job,
            trigger=CronTrigger.from_crontab(self.cron),
            id="nppes_update_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Update scheduler started ({self.cron})")

    def stop(self):
        self.scheduler.shutdown()
        logger.info("Update scheduler stopped")
