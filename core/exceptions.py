"""
Custom exceptions for the NPPES import pipeline with structured error context.

Every exception carries a context dictionary so that operator tooling and
logs can report which table, stage or NPI was involved without parsing
message strings.

Exception Hierarchy:
    ImportException (base)
    ├── FeedError
    │   ├── FeedFileError
    │   └── RecordFormatError
    ├── PipelineStageError
    │   ├── TableBuildError
    │   ├── TransformationError
    │   ├── CutoverError
    │   └── RollbackError
    ├── ValidationGateError
    └── RecordProcessingError
"""

from typing import Optional, Dict, Any
from datetime import datetime


class ImportException(Exception):
    """
    Base exception for all import-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (table, stage, npi, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.utcnow()

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Feed Errors
# ============================================================================

class FeedError(ImportException):
    """Base exception for incremental feed problems."""
    pass


class FeedFileError(FeedError):
    """
    Raised when the delta file cannot be opened or read.

    Context should include:
        - file_path: Path to the delimited file
    """
    pass


class RecordFormatError(FeedError):
    """
    Raised when a single feed row cannot be turned into a provider record.

    Context should include:
        - field_name: Column that failed
        - field_value: Offending value
    """
    pass


# ============================================================================
# Bulk Pipeline Errors
# ============================================================================

class PipelineStageError(ImportException):
    """
    Base exception for a failed bulk pipeline stage.

    A stage error aborts the stage; its transaction is never committed.
    Recovery is an explicit rollback by the operator.
    """
    pass


class TableBuildError(PipelineStageError):
    """Shadow table creation failed."""
    pass


class TransformationError(PipelineStageError):
    """
    Set-based transformation from staging into shadow tables failed.

    Context should include:
        - table_name: Shadow table being populated
        - step: Transformation step (providers, addresses, ...)
    """
    pass


class CutoverError(PipelineStageError):
    """
    Renaming shadow tables into production failed.

    Context should include:
        - table_name: Table being renamed
        - missing_tables: Shadow tables that do not exist (if applicable)
    """
    pass


class RollbackError(PipelineStageError):
    """Restoring the previous table generation failed."""
    pass


class ValidationGateError(ImportException):
    """
    Cutover refused because validation is enforced and an integrity check failed.

    Context should include:
        - failed_checks: Names of the checks that failed
    """
    pass


# ============================================================================
# Incremental Errors
# ============================================================================

class RecordProcessingError(ImportException):
    """
    Reconciling a single feed record failed.

    Context should include:
        - npi: Natural key of the record
        - row_number: Position of the row in the delta file
    """
    pass
