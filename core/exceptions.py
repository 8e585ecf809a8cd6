"""
Custom exceptions for the WAD indexing pipeline with structured error context.

Every fallible step of the pipeline raises one of the exceptions below. The
orchestrator catches each family explicitly and decides whether the failure
is fatal for the run or only for the item being processed.

Exception Hierarchy:
    WADIndexError (base)
    ├── SetupError                  fatal, aborts the run
    │   ├── InputPathError
    │   ├── StoreUnavailableError
    │   └── SchemaMissingError
    ├── ArchiveError                recorded, archive members skipped
    │   ├── ArchiveUnreadable
    │   └── ExtractionIOError
    ├── ChecksumError               recorded
    ├── ParseError                  recorded, member skipped
    │   ├── MalformedHeader
    │   └── TruncatedDirectory
    └── StoreError                  recorded, next insert attempted
        ├── ConstraintViolationError
        └── StoreIOError
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class WADIndexError(Exception):
    """
    Base exception for all indexing errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (archive, member, keysum, etc.)
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
        self.timestamp = datetime.now(timezone.utc)

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
        """Convert exception to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Setup Errors
# ============================================================================

class SetupError(WADIndexError):
    """Base exception for conditions that abort the whole run."""
    pass


class InputPathError(SetupError):
    """
    The input root does not exist, is not a directory, or cannot be read.

    Context should include:
        - root: The configured input root
    """
    pass


class StoreUnavailableError(SetupError):
    """
    A configured database (index store or reference lookup) cannot be reached.

    Context should include:
        - database_url: URL with credentials masked
    """
    pass


class SchemaMissingError(SetupError):
    """
    A configured database has no applied schema entries.

    Context should include:
        - table_name: The schema log table that was checked
    """
    pass


# ============================================================================
# Archive Errors
# ============================================================================

class ArchiveError(WADIndexError):
    """Base exception for zip archive failures."""
    pass


class ArchiveUnreadable(ArchiveError):
    """
    Raised for corrupt, truncated or unreadable zip archives.

    Context should include:
        - archive: Path to the archive
        - member: Member name (if a single member failed)
    """
    pass


class ExtractionIOError(ArchiveError):
    """
    Raised when writing an extracted member to scratch space fails.

    Context should include:
        - archive: Path to the archive
        - member: Member being extracted
        - destination: Scratch directory
    """
    pass


# ============================================================================
# Checksum Errors
# ============================================================================

class ChecksumError(WADIndexError):
    """
    Raised when a file cannot be read while computing its checksums.

    Context should include:
        - path: File being hashed
    """
    pass


# ============================================================================
# Parse Errors
# ============================================================================

class ParseError(WADIndexError):
    """Base exception for WAD container parse failures."""
    pass


class MalformedHeader(ParseError):
    """
    The 12-byte WAD header is short, has an unknown magic tag, or carries
    negative counts/offsets.
    """
    pass


class TruncatedDirectory(ParseError):
    """
    The lump directory, or a lump it describes, extends past the end of the
    buffer.

    Context should include:
        - buffer_size: Size of the parsed buffer
        - lump_index: Index of the offending entry (if applicable)
    """
    pass


# ============================================================================
# Store Errors
# ============================================================================

class StoreError(WADIndexError):
    """Base exception for destination store insert failures."""
    pass


class ConstraintViolationError(StoreError):
    """
    An insert was rejected by a table constraint.

    Context should include:
        - table_name: Name of the table
        - keysum: Key of the record being inserted
    """
    pass


class StoreIOError(StoreError):
    """
    An insert failed for an operational reason (lost connection, locked or
    read-only database, disk full).

    Context should include:
        - table_name: Name of the table
        - keysum: Key of the record being inserted
    """
    pass
