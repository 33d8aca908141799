"""Decorators for command functions."""

import functools
import time
import traceback
from collections.abc import Callable

import typer
from pydantic import ValidationError

from rivet_cli.models.exceptions import RivetError
from rivet_cli.utils.exit_codes import (
    ERROR_GENERAL,
    ERROR_INVALID_ARGS,
    exit_code_for,
    get_exit_code_name,
)
from rivet_cli.utils.logger import get_logger
from rivet_cli.utils.ui.formatters import format_error


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


def command_wrapper(_func: Callable | None = None):
    """Decorator to wrap command functions with common functionality."""

    def decorator(func: Callable):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger()
            cmd = func.__name__
            start = time.monotonic()
            logger.info("command started: %s", cmd)
            try:
                result = func(*args, **kwargs)
                elapsed = time.monotonic() - start
                logger.info("command completed: %s (%.3fs)", cmd, elapsed)
                return result

            except (AppError, RivetError) as e:
                elapsed = time.monotonic() - start
                code = e.exit_code if isinstance(e, AppError) else exit_code_for(e)
                logger.error(
                    "command failed: %s (%.3fs) [%s] - %s",
                    cmd,
                    elapsed,
                    get_exit_code_name(code),
                    str(e),
                )
                format_error(str(e))
                raise typer.Exit(code=code) from e

            except ValidationError as e:
                elapsed = time.monotonic() - start
                message = "; ".join(_describe(err) for err in e.errors())
                logger.error(
                    "command failed: %s (%.3fs) [%s] - %s",
                    cmd,
                    elapsed,
                    get_exit_code_name(ERROR_INVALID_ARGS),
                    message,
                )
                format_error(message)
                raise typer.Exit(code=ERROR_INVALID_ARGS) from e

            except typer.Exit:
                # Re-raise Typer's own exits (like --help or explicit Exit(0))
                raise

            except Exception as e:
                elapsed = time.monotonic() - start
                logger.error(
                    "command failed: %s (%.3fs) - %s\n%s",
                    cmd,
                    elapsed,
                    str(e),
                    traceback.format_exc(),
                )
                format_error(f"An unexpected error occurred: {str(e)}")
                raise typer.Exit(code=ERROR_GENERAL) from e

        return wrapper

    if _func is None:
        return decorator
    return decorator(_func)


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]
