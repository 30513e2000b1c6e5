# ============================================================================
# File: ingestion/runner.py
# Description: Orchestration of the bulk pipeline and the incremental worker
# ============================================================================
"""
Import runners.

BulkImportRunner exposes one method per operator step of the bulk pipeline
(build, transform, validate, swap, summary, rollback). Each step runs in
its own transaction and is recorded in import_runs, so an operator can stop
after validate, inspect the shadow tables and only then swap.

NppesUpdateWorker applies a weekly update file record by record, one
transaction per record, tolerating individual record failures.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional
from pathlib import Path
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
import asyncio
import logging
import time

from core.config import settings
from core.database import engine as default_engine, async_session_maker
from core.exceptions import RecordProcessingError, ValidationGateError
from ingestion.base import ImportRunTracker
from ingestion.pipeline import (
    build_shadow_tables,
    ImportValidator,
    ValidationReport,
    import_summary,
    promote_shadow_tables,
    drop_old_tables,
    rollback_import,
)
from ingestion.transformers.staging import StagingTransformer
from ingestion.transformers.normalizer import FeedNormalizer
from ingestion.extractors.nppes_csv import NppesCsvReader
from ingestion.loaders.reconciler import ProviderReconciler
from ingestion.slots import FeedColumns
from models.base import RunType, ImportStatus, PipelineStage

logger = logging.getLogger(__name__)


class BulkImportRunner:
    """
    Bulk pipeline orchestrator.

    Stage state machine (recorded in import_runs.stage):
        no_shadow -> shadow_built -> transformed -> validated
            -> cutover_committed -> old_dropped
    rollback moves to rolled_back and is only effective while the _old
    generation still exists (between cutover_committed and old_dropped).
    """

    def __init__(
        self,
        engine: AsyncEngine = default_engine,
        tracker: Optional[ImportRunTracker] = None,
        staging_table: Optional[str] = None,
        grace_seconds: Optional[float] = None,
        require_validation: Optional[bool] = None,
    ):
        self.engine = engine
        self.tracker = tracker or ImportRunTracker()
        self.staging_table = staging_table or settings.STAGING_TABLE
        self.grace_seconds = settings.CUTOVER_GRACE_SECONDS if grace_seconds is None else grace_seconds
        self.require_validation = (
            settings.CUTOVER_REQUIRE_VALIDATION if require_validation is None else require_validation
        )

    async def build(self) -> None:
        run = await self.tracker.start(RunType.BULK)
        try:
            async with self.engine.begin() as conn:
                await build_shadow_tables(conn)
        except Exception as e:
            await self._fail(run, "build", e)
            raise
        await self.tracker.complete(run, ImportStatus.SUCCESS, stage=PipelineStage.SHADOW_BUILT)
        logger.info("Shadow tables built")

    async def transform(self) -> Dict[str, int]:
        run = await self.tracker.start(RunType.BULK)
        start = time.monotonic()
        try:
            async with self.engine.begin() as conn:
                counts = await StagingTransformer(conn, self.staging_table).run()
        except Exception as e:
            await self._fail(run, "transform", e)
            raise
        await self.tracker.complete(
            run,
            ImportStatus.SUCCESS,
            stage=PipelineStage.TRANSFORMED,
            records_processed=counts.get("providers", 0),
            details={"counts": counts},
        )
        logger.info(f"Transform finished in {time.monotonic() - start:.1f}s")
        return counts

    async def validate(self, generation: Optional[str] = None) -> ValidationReport:
        """
        Run the validator. A failing report is recorded but does not raise;
        whether to swap anyway is the operator's call unless
        CUTOVER_REQUIRE_VALIDATION is set.
        """
        run = await self.tracker.start(RunType.BULK)
        try:
            report = await self._validation_report(generation)
        except Exception as e:
            await self._fail(run, "validate", e)
            raise

        details = {"checks": report.as_dict()}
        if report.integrity_ok:
            await self.tracker.complete(run, ImportStatus.SUCCESS, stage=PipelineStage.VALIDATED, details=details)
        else:
            await self.tracker.complete(
                run,
                ImportStatus.FAILED,
                error_message=f"Failed checks: {', '.join(report.failed_checks)}",
                details=details,
            )
        return report

    async def swap(self, keep_old: bool = False) -> Dict[str, Any]:
        """
        Promote the shadow tables.

        The renames commit in one transaction; after CUTOVER_GRACE_SECONDS
        the _old generation is dropped in a second one unless keep_old is set.
        """
        current = await self.tracker.current_stage()
        if current not in (PipelineStage.TRANSFORMED, PipelineStage.VALIDATED):
            logger.warning(f"Swapping from pipeline stage '{current.value}'")

        run = await self.tracker.start(RunType.BULK)
        try:
            if self.require_validation:
                report = await self._validation_report()
                if not report.integrity_ok:
                    raise ValidationGateError(
                        "Validation failed; refusing to swap",
                        context={"failed_checks": report.failed_checks}
                    )

            async with self.engine.begin() as conn:
                promoted = await promote_shadow_tables(conn)
        except Exception as e:
            await self._fail(run, "swap", e)
            raise

        await self.tracker.complete(
            run,
            ImportStatus.SUCCESS,
            stage=PipelineStage.CUTOVER_COMMITTED,
            details={"promoted": promoted},
        )
        logger.info(f"Cutover committed for {len(promoted)} tables")

        result = {"promoted": promoted, "dropped": []}
        if not keep_old:
            await asyncio.sleep(self.grace_seconds)
            result["dropped"] = await self.drop_old()
        return result

    async def drop_old(self) -> list:
        run = await self.tracker.start(RunType.BULK)
        try:
            async with self.engine.begin() as conn:
                dropped = await drop_old_tables(conn)
        except Exception as e:
            await self._fail(run, "drop_old", e)
            raise
        await self.tracker.complete(
            run, ImportStatus.SUCCESS, stage=PipelineStage.OLD_DROPPED, details={"dropped": dropped}
        )
        return dropped

    async def summary(self, generation: str = "") -> Dict[str, int]:
        async with self.engine.connect() as conn:
            return await import_summary(conn, generation)

    async def rollback(self) -> list:
        run = await self.tracker.start(RunType.BULK)
        try:
            async with self.engine.begin() as conn:
                restored = await rollback_import(conn)
        except Exception as e:
            await self._fail(run, "rollback", e)
            raise
        await self.tracker.complete(
            run, ImportStatus.SUCCESS, stage=PipelineStage.ROLLED_BACK, details={"restored": restored}
        )
        return restored

    async def run_all(self) -> Dict[str, Any]:
        """build -> transform -> validate -> swap in one go."""
        await self.build()
        counts = await self.transform()
        report = await self.validate()
        if not report.integrity_ok:
            logger.warning(f"Continuing to swap despite failed checks: {', '.join(report.failed_checks)}")
        swap = await self.swap()
        return {
            "counts": counts,
            "validation": report.as_dict(),
            "integrity_ok": report.integrity_ok,
            "failed_checks": report.failed_checks,
            **swap,
        }

    async def _validation_report(self, generation: Optional[str] = None) -> ValidationReport:
        async with self.engine.connect() as conn:
            if generation is None:
                return await ImportValidator(conn).run()
            return await ImportValidator(conn, generation).run()

    async def _fail(self, run, step: str, error: Exception) -> None:
        logger.error(f"Bulk step '{step}' failed: {error}")
        await self.tracker.complete(run, ImportStatus.FAILED, error_message=str(error))


@dataclass
class UpdateSummary:
    processed: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0
    duration_seconds: float = 0.0

    def format(self) -> str:
        return "\n".join([
            "=" * 60,
            "NPPES UPDATE SUMMARY",
            "=" * 60,
            f"Processed: {self.processed:,}",
            f"Created:   {self.created:,}",
            f"Updated:   {self.updated:,}",
            f"Errors:    {self.errors:,}",
            f"Duration:  {self.duration_seconds / 60:.1f} minutes",
            "=" * 60,
        ])


class NppesUpdateWorker:
    """
    Apply an NPPES update file to the production tables.

    Guarantees:
    - One transaction per record; a failing record rolls back only itself
    - Failures are logged with the NPI and counted, never propagated
    - Re-running the same file is safe (upsert by NPI, child rows replaced)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker = async_session_maker,
        tracker: Optional[ImportRunTracker] = None,
        progress_interval: Optional[int] = None,
        chunk_size: Optional[int] = None,
        sync_identifiers: Optional[bool] = None,
    ):
        self.session_factory = session_factory
        self.tracker = tracker or ImportRunTracker(session_factory)
        self.progress_interval = progress_interval or settings.UPDATE_PROGRESS_INTERVAL
        self.chunk_size = chunk_size or settings.UPDATE_CHUNK_SIZE
        self.sync_identifiers = (
            settings.UPDATE_SYNC_IDENTIFIERS if sync_identifiers is None else sync_identifiers
        )
        self.normalizer = FeedNormalizer()

    async def perform(self, file_path: str) -> UpdateSummary:
        path = Path(file_path).resolve()
        reader = NppesCsvReader(str(path), chunk_size=self.chunk_size)
        total = reader.count_records()
        logger.info(f"Processing {total:,} records from {path}")

        run = await self.tracker.start(
            RunType.INCREMENTAL,
            source_path=str(path),
            source_mtime=path.stat().st_mtime,
        )
        summary = UpdateSummary()
        start = time.monotonic()

        try:
            async with self.session_factory() as session:
                reconciler = ProviderReconciler(session, sync_identifiers=self.sync_identifiers)

                for row_number, row in reader.iter_rows():
                    summary.processed += 1
                    try:
                        record = self.normalizer.normalize(row)
                        async with session.begin():
                            created = await reconciler.reconcile(record)
                    except Exception as e:
                        summary.errors += 1
                        error = RecordProcessingError(
                            "Failed to process record",
                            context={"npi": row.get(FeedColumns.NPI), "row_number": row_number},
                            original_exception=e
                        )
                        logger.exception(str(error))
                    else:
                        if created:
                            summary.created += 1
                        else:
                            summary.updated += 1

                    if summary.processed % self.progress_interval == 0:
                        self._log_progress(summary, total, start)
        except Exception as e:
            summary.duration_seconds = time.monotonic() - start
            await self.tracker.complete(
                run,
                ImportStatus.FAILED,
                records_processed=summary.processed,
                records_created=summary.created,
                records_updated=summary.updated,
                records_failed=summary.errors,
                error_message=str(e),
            )
            raise

        summary.duration_seconds = time.monotonic() - start
        await self.tracker.complete(
            run,
            ImportStatus.SUCCESS if summary.errors == 0 else ImportStatus.PARTIAL,
            records_processed=summary.processed,
            records_created=summary.created,
            records_updated=summary.updated,
            records_failed=summary.errors,
            error_message=f"{summary.errors} records failed" if summary.errors else None,
        )
        logger.info(
            f"Update complete: {summary.created:,} created, {summary.updated:,} updated, "
            f"{summary.errors:,} errors in {summary.duration_seconds:.1f}s"
        )
        return summary

    @staticmethod
    def _log_progress(summary: UpdateSummary, total: int, start: float) -> None:
        elapsed = time.monotonic() - start
        rate = summary.processed / elapsed if elapsed > 0 else 0.0
        remaining = max(total - summary.processed, 0)
        eta_minutes = (remaining / rate / 60) if rate > 0 else 0.0
        pct = (summary.processed / total * 100) if total else 100.0
        logger.info(
            f"Progress: {summary.processed:,}/{total:,} ({pct:.1f}%) | "
            f"Created: {summary.created:,} | Updated: {summary.updated:,} | Errors: {summary.errors:,} | "
            f"Rate: {rate:.0f}/sec | ETA: {eta_minutes:.1f} min"
        )
