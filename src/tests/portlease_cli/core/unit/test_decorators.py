"""Unit tests for handle_exceptions and exit code mapping."""

import click
import pytest
from click.testing import CliRunner

from portlease.common.errors import (
    AlreadyRunningError,
    LockTimeoutError,
    NoFreePortError,
    RegistryCorruptError,
)
from portlease_cli.core.constants import ExitCode
from portlease_cli.core.decorators import exit_code_for, handle_exceptions
from portlease_common.io.files import FileOperationError


def _command_raising(error: BaseException) -> click.Command:
    @click.command()
    @handle_exceptions
    def failing() -> None:
        raise error

    return failing


@pytest.mark.unit
class TestExitCodeFor:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (LockTimeoutError("busy"), ExitCode.TIMEOUT),
            (AlreadyRunningError("running"), ExitCode.CONFLICT),
            (NoFreePortError("full"), ExitCode.EXHAUSTED),
            (RegistryCorruptError("bad"), ExitCode.GENERAL_ERROR),
        ],
    )
    def test_mapping(self, error, code: int) -> None:
        assert exit_code_for(error) == code


@pytest.mark.unit
class TestHandleExceptions:
    @pytest.mark.parametrize(
        ("error", "code"),
        [
            (NoFreePortError("No free port between 3000 and 65535"), ExitCode.EXHAUSTED),
            (FileOperationError("Cannot write JSON file"), ExitCode.PERMISSION_ERROR),
            (PermissionError("denied"), ExitCode.PERMISSION_ERROR),
            (ValueError("bad value"), ExitCode.CONFIG_ERROR),
            (KeyboardInterrupt(), ExitCode.INTERRUPTED),
            (RuntimeError("boom"), ExitCode.GENERAL_ERROR),
        ],
    )
    def test_exit_codes(self, error: BaseException, code: int) -> None:
        result = CliRunner().invoke(_command_raising(error))

        assert result.exit_code == code

    def test_message_reported(self) -> None:
        result = CliRunner().invoke(_command_raising(NoFreePortError("No free port above 3000")))

        assert "No free port above 3000" in result.output

    def test_click_exit_passes_through(self) -> None:
        @click.command()
        @click.pass_context
        @handle_exceptions
        def exiting(ctx: click.Context) -> None:
            ctx.exit(ExitCode.NOT_FOUND)

        assert CliRunner().invoke(exiting).exit_code == ExitCode.NOT_FOUND
