"""Custom Click decorators for common CLI patterns."""

import functools
import traceback
from collections.abc import Callable
from typing import Any, TypeVar

import click

from portlease.common.errors import (
    AlreadyRunningError,
    LockTimeoutError,
    NoFreePortError,
    PortLeaseError,
)
from portlease_cli.core.constants import ExitCode
from portlease_cli.core.utils import CliOutput
from portlease_common.io.files import FileOperationError
from portlease_logging import get_cli_logger

logger = get_cli_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_LEASE_ERROR_EXIT_CODES: tuple[tuple[type[PortLeaseError], int], ...] = (
    (LockTimeoutError, ExitCode.TIMEOUT),
    (AlreadyRunningError, ExitCode.CONFLICT),
    (NoFreePortError, ExitCode.EXHAUSTED),
)


def exit_code_for(error: PortLeaseError) -> int:
    """Map a lease error to its CLI exit code."""
    for error_type, code in _LEASE_ERROR_EXIT_CODES:
        if isinstance(error, error_type):
            return code
    return ExitCode.GENERAL_ERROR


def handle_exceptions(func: F) -> F:
    """Convert exceptions into error messages and exit codes.

    Parameters
    ----------
    func : Callable
        Function to wrap

    Returns
    -------
    Callable
        Wrapped function
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except click.ClickException:
            raise
        except KeyboardInterrupt:
            ctx = click.get_current_context()
            CliOutput.warning("Interrupted")
            ctx.exit(ExitCode.INTERRUPTED)
        except PortLeaseError as e:
            ctx = click.get_current_context()
            logger.debug("Lease operation failed: %s (details=%s)", e, e.details)
            CliOutput.error(str(e))
            ctx.exit(exit_code_for(e))
        except (FileOperationError, PermissionError) as e:
            ctx = click.get_current_context()
            CliOutput.error(f"Permission or file error: {e}")
            ctx.exit(ExitCode.PERMISSION_ERROR)
        except ValueError as e:
            ctx = click.get_current_context()
            CliOutput.error(str(e))
            ctx.exit(ExitCode.CONFIG_ERROR)
        except Exception as e:
            ctx = click.get_current_context()
            logger.exception("Unexpected error")
            CliOutput.error(f"Unexpected error: {e}")
            if getattr(ctx.obj, "verbose", False):
                CliOutput.error(traceback.format_exc())
            else:
                CliOutput.info("Re-run with -v for full traceback")
            ctx.exit(ExitCode.GENERAL_ERROR)

    return wrapper  # type: ignore[return-value]
