"""
Import pipeline components for the NPPES provider registry.

Two independent paths write the provider tables:

Bulk (full dissemination file, set-based SQL):
    pipeline.table_builder: shadow (_new) copies of the five target tables
    transformers.staging: staging table -> shadow tables
    pipeline.validator: integrity and count checks on a table generation
    pipeline.cutover: rename-based cutover, old-generation drop, rollback
    runner.BulkImportRunner: one transaction per operator step

Incremental (weekly update files, row by row):
    extractors.nppes_csv: chunked pandas reader
    transformers.normalizer: CSV row -> ProviderRecord
    loaders.reconciler: ProviderRecord -> live tables
    runner.NppesUpdateWorker: one transaction per record, partial-failure tolerant
    scheduler.UpdateScheduler: APScheduler cron job for the worker

Shared:
    slots: column layout of the wide record (taxonomy/identifier slots)
    base.ImportRunTracker: import_runs bookkeeping
    health.HealthReporter: read-only health checks

Usage:
    from ingestion.runner import BulkImportRunner, NppesUpdateWorker

    runner = BulkImportRunner()
    await runner.build()
    await runner.transform()
    report = await runner.validate()
    if report.integrity_ok:
        await runner.swap()

    summary = await NppesUpdateWorker().perform("npidata_weekly.csv")

Error Handling:
    Pipeline stage failures raise PipelineStageError subclasses from
    core.exceptions and leave production untouched; per-record failures in
    the incremental path are logged and counted.
"""

