"""
Exit codes for Rivet CLI.

Semantic exit codes so scripts can tell what went wrong without parsing
error messages.
"""

from rivet_cli.models.exceptions import (
    ContextNotFoundError,
    CorruptStoreError,
    FilterParseError,
    RivetError,
    StoreIOError,
    TaskNotFoundError,
    TaskValidationError,
)

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments, filter syntax or validation error
ERROR_INVALID_ARGS = 2

# Resource not found
ERROR_NOT_FOUND = 5

# Store directory or file cannot be read or written
ERROR_PERMISSION_DENIED = 6

# A partition file exists but cannot be parsed
ERROR_CORRUPT_STORE = 7


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_PERMISSION_DENIED: "ERROR_PERMISSION_DENIED",
        ERROR_CORRUPT_STORE: "ERROR_CORRUPT_STORE",
    }
    return code_names.get(code, f"UNKNOWN({code})")


def exit_code_for(error: RivetError) -> int:
    """Map a Rivet error to its exit code."""
    if isinstance(error, CorruptStoreError):
        return ERROR_CORRUPT_STORE
    if isinstance(error, StoreIOError):
        return ERROR_PERMISSION_DENIED
    if isinstance(error, (TaskNotFoundError, ContextNotFoundError)):
        return ERROR_NOT_FOUND
    if isinstance(error, (TaskValidationError, FilterParseError)):
        return ERROR_INVALID_ARGS
    return ERROR_GENERAL
