"""
Core utilities and configuration for the WAD indexer.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Engine/session management, schema creation and schema checks
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration

Usage:
    from core.config import settings
    from core.database import create_engine_for, make_session_factory, init_schema
    from core.exceptions import SetupError, ParseError
    from core.logging import setup_logging

Example:
    # Initialize logging
    setup_logging()

    # Get database session
    engine = create_engine_for(settings.DATABASE_URL)
    async with make_session_factory(engine)() as session:
        # Perform database operations
        pass
"""

__all__ = [
    "settings",
    "create_engine_for",
    "make_session_factory",
    "init_schema",
    "check_schema",
    "setup_logging",
    # Exceptions
    "WADIndexError",
    "SetupError",
    "InputPathError",
    "StoreUnavailableError",
    "SchemaMissingError",
    "ArchiveError",
    "ArchiveUnreadable",
    "ExtractionIOError",
    "ChecksumError",
    "ParseError",
    "MalformedHeader",
    "TruncatedDirectory",
    "StoreError",
    "ConstraintViolationError",
    "StoreIOError",
]
