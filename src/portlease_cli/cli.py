"""Main CLI entry point for portlease.

This module provides the main Click command group and the shared context
object handed to every subcommand.
"""

from pathlib import Path

import click

from portlease import PortRegistryCoordinator
from portlease_cli.commands import leases, run
from portlease_cli.core.constants import ALL_LOG_LEVELS, LOGGING_PACKAGES, LogLevel
from portlease_cli.core.utils import CliOutput
from portlease_common.config import Settings, resolve_settings
from portlease_logging import configure_logger, get_cli_logger

logger = get_cli_logger(__name__)


def _configure_logging(verbose: bool, log_level: str | None) -> None:
    """Configure package loggers (file always, console with ``-v``)."""
    level = log_level or (LogLevel.DEBUG.value if verbose else None)
    for pkg_name in LOGGING_PACKAGES:
        try:
            configure_logger(
                pkg_name,
                profile="cli",
                level=level,
                to_console=verbose,
            )
        except OSError as e:
            logger.debug("Failed to configure logger for %s: %s", pkg_name, e)


class Context:
    """CLI context object for sharing state between commands."""

    def __init__(self, project_dir: Path | None = None) -> None:
        self.verbose: bool = False
        self.project_dir: Path = project_dir or Path.cwd()
        self.registry_dir: Path | None = None
        self._settings: Settings | None = None
        self._coordinator: PortRegistryCoordinator | None = None
        self.output = CliOutput

    @property
    def settings(self) -> Settings:
        """Resolved settings for the working directory."""
        if self._settings is None:
            self._settings = resolve_settings(
                self.project_dir,
                registry_dir=self.registry_dir,
            )
        return self._settings

    @property
    def coordinator(self) -> PortRegistryCoordinator:
        """Coordinator built from ``settings``."""
        if self._coordinator is None:
            self._coordinator = PortRegistryCoordinator.from_settings(self.settings)
        return self._coordinator


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log to the console as well")
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in ALL_LOG_LEVELS]),
    help="Set logging level",
)
@click.option(
    "--registry-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the shared lease registry",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    log_level: str | None,
    registry_dir: Path | None,
) -> None:
    """Portlease - stable per-project frontend/backend ports."""
    ctx.ensure_object(Context)
    pl_ctx: Context = ctx.obj
    pl_ctx.verbose = verbose
    pl_ctx.registry_dir = registry_dir

    _configure_logging(verbose, log_level)
    logger.debug("portlease CLI started in %s", pl_ctx.project_dir)


cli.add_command(leases.acquire)
cli.add_command(leases.record_pids)
cli.add_command(leases.release)
cli.add_command(leases.status)
cli.add_command(run.run)


def main() -> None:
    """Serve as the main entry point for the CLI."""
    cli(prog_name="portlease")


if __name__ == "__main__":
    main()
