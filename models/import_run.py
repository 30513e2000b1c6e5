from sqlalchemy import Column, BigInteger, String, Enum, DateTime, Float, Integer, Text, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from datetime import datetime
import uuid
from models.base import Base, RunType, ImportStatus, PipelineStage


class ImportRun(Base):
    """
    Tracks metadata for each import execution.

    Purpose:
    - Audit trail of bulk pipeline stages and incremental update runs
    - Current position of the bulk pipeline state machine
    - Per-run counts and durations for the stats endpoint
    - Duplicate-run detection for scheduled incremental updates

    Design:
    - One row per bulk stage invocation (stage records the state reached)
    - One row per incremental run (source_path/source_mtime identify the file)
    """
    __tablename__ = "import_runs"

    id = Column(BigInteger, primary_key=True, autoincrement=True)
    run_id = Column(UUID(as_uuid=True), default=uuid.uuid4, unique=True, nullable=False, index=True)

    run_type = Column(Enum(RunType), nullable=False, index=True)
    stage = Column(Enum(PipelineStage), nullable=True)
    status = Column(Enum(ImportStatus), default=ImportStatus.PENDING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Source file (incremental runs)
    source_path = Column(String(1024), nullable=True)
    source_mtime = Column(Float, nullable=True)

    # Statistics
    records_processed = Column(Integer, default=0)
    records_created = Column(Integer, default=0)
    records_updated = Column(Integer, default=0)
    records_failed = Column(Integer, default=0)

    # Error tracking
    error_message = Column(Text, nullable=True)
    details = Column(JSONB, nullable=True)  # per-table counts, validation results

    __table_args__ = (
        Index("idx_import_run_type_started", "run_type", "started_at"),
        Index("idx_import_run_source", "source_path", "status"),
    )

    def __repr__(self):
        return f"<ImportRun(type={self.run_type}, stage={self.stage}, status={self.status})>"
