"""Unit tests for rivet_cli.utils.exit_codes."""

from __future__ import annotations

from pathlib import Path

import pytest

from rivet_cli.models.exceptions import (
    ContextNotFoundError,
    CorruptStoreError,
    DependencyCycleError,
    FilterParseError,
    InvalidTransitionError,
    RivetError,
    StoreIOError,
    TaskNotFoundError,
    TaskValidationError,
)
from rivet_cli.utils.exit_codes import (
    ERROR_CORRUPT_STORE,
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    ERROR_NOT_FOUND,
    ERROR_PERMISSION_DENIED,
    SUCCESS,
    exit_code_for,
    get_exit_code_name,
)


# ---------------------------------------------------------------------------
# Constant value tests
# ---------------------------------------------------------------------------


class TestExitCodeConstants:
    """Verify the numeric values of every exit-code constant."""

    def test_values(self):
        assert SUCCESS == 0
        assert ERROR_GENERAL == 1
        assert ERROR_INVALID_ARGS == 2
        assert ERROR_NOT_FOUND == 5
        assert ERROR_PERMISSION_DENIED == 6
        assert ERROR_CORRUPT_STORE == 7

    def test_all_constants_are_unique(self):
        codes = [
            SUCCESS,
            ERROR_GENERAL,
            ERROR_INVALID_ARGS,
            ERROR_NOT_FOUND,
            ERROR_PERMISSION_DENIED,
            ERROR_CORRUPT_STORE,
        ]
        assert len(codes) == len(set(codes))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestNames:
    def test_known_name(self):
        assert get_exit_code_name(ERROR_CORRUPT_STORE) == "ERROR_CORRUPT_STORE"

    def test_unknown_name(self):
        assert get_exit_code_name(99) == "UNKNOWN(99)"


class TestExitCodeFor:
    """Exceptions map to semantic exit codes."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (CorruptStoreError(Path("pending.data"), 3, "bad"), ERROR_CORRUPT_STORE),
            (StoreIOError("denied"), ERROR_PERMISSION_DENIED),
            (TaskNotFoundError("abc"), ERROR_NOT_FOUND),
            (ContextNotFoundError("work"), ERROR_NOT_FOUND),
            (TaskValidationError("empty"), ERROR_INVALID_ARGS),
            (DependencyCycleError("cycle"), ERROR_INVALID_ARGS),
            (InvalidTransitionError("no"), ERROR_INVALID_ARGS),
            (FilterParseError("color:red", "unknown"), ERROR_INVALID_ARGS),
            (RivetError("other"), ERROR_GENERAL),
        ],
    )
    def test_mapping(self, error, code):
        assert exit_code_for(error) == code
