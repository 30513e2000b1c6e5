"""
Bulk import pipeline stages.

    build_shadow_tables -> StagingTransformer.run -> ImportValidator.run
        -> promote_shadow_tables -> drop_old_tables
                                 \\-> rollback_import

Every stage takes an AsyncConnection and leaves the commit to its caller
(see ingestion.runner.BulkImportRunner).
"""

from ingestion.pipeline.tables import TARGET_TABLES, shadow_name, old_name, failed_name, table_exists
from ingestion.pipeline.table_builder import build_shadow_tables, install_helper_functions
from ingestion.pipeline.validator import ImportValidator, ValidationReport, CheckResult, import_summary
from ingestion.pipeline.cutover import promote_shadow_tables, drop_old_tables, rollback_import

__all__ = [
    "TARGET_TABLES",
    "shadow_name",
    "old_name",
    "failed_name",
    "table_exists",
    "build_shadow_tables",
    "install_helper_functions",
    "ImportValidator",
    "ValidationReport",
    "CheckResult",
    "import_summary",
    "promote_shadow_tables",
    "drop_old_tables",
    "rollback_import",
]
