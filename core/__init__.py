"""
Core utilities and configuration for the NPPES provider registry.

This package provides foundational components used throughout the import
pipeline and the read API:

Modules:
    config: Application configuration and environment variable management
    database: Async engine and session management
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import engine, async_session_maker
    from core.exceptions import CutoverError, RecordProcessingError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Run a pipeline stage on an explicit connection
    async with engine.begin() as conn:
        await build_shadow_tables(conn)
"""
