"""Lease commands: acquire, record-pids, release, status."""

import json

import click

from portlease_cli.core.constants import ExitCode, Icons, OutputFormat
from portlease_cli.core.decorators import handle_exceptions
from portlease_common.path import derive_project_name
from portlease_logging import get_cli_logger

logger = get_cli_logger(__name__)

project_option = click.option(
    "--project",
    "-p",
    help="Project name (defaults to the current directory name)",
)


def resolve_project(ctx: click.Context, project: str | None) -> str:
    """Return the explicit project name or derive it from the project dir."""
    return project or derive_project_name(ctx.obj.project_dir)


@click.command()
@project_option
@click.option("--frontend-start", type=click.IntRange(1, 65535), help="First frontend port to try")
@click.option("--backend-start", type=click.IntRange(1, 65535), help="First backend port to try")
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice([OutputFormat.TEXT, OutputFormat.ENV, OutputFormat.JSON]),
    default=OutputFormat.TEXT,
    help="Output format",
)
@click.pass_context
@handle_exceptions
def acquire(
    ctx: click.Context,
    project: str | None,
    frontend_start: int | None,
    backend_start: int | None,
    format_type: str,
) -> None:
    """Reserve a frontend/backend port pair for a project.

    \b
    Reuses the project's previous ports when they are free. Giving both
    start ports (or both FRONTEND_START_PORT and BACKEND_START_PORT)
    forces a fresh search from those values.
    """  # noqa: W605
    output = ctx.obj.output
    name = resolve_project(ctx, project)
    ports = ctx.obj.coordinator.acquire(name, frontend_start, backend_start)

    if format_type == OutputFormat.ENV:
        output.plain(f"FRONTEND_PORT={ports.frontend_port}")
        output.plain(f"BACKEND_PORT={ports.backend_port}")
    elif format_type == OutputFormat.JSON:
        output.plain(
            json.dumps(
                {
                    "project": name,
                    "frontend_port": ports.frontend_port,
                    "backend_port": ports.backend_port,
                },
            ),
        )
    else:
        output.success(
            f"{name}: frontend {ports.frontend_port}, backend {ports.backend_port}",
        )


@click.command(name="record-pids")
@click.argument("project")
@click.argument("frontend_pid", type=click.IntRange(min=1))
@click.argument("backend_pid", type=click.IntRange(min=1))
@click.pass_context
@handle_exceptions
def record_pids(
    ctx: click.Context,
    project: str,
    frontend_pid: int,
    backend_pid: int,
) -> None:
    """Record the pids running on a project's leased ports."""
    output = ctx.obj.output
    if not ctx.obj.coordinator.record_pids(project, frontend_pid, backend_pid):
        output.error(f"No lease for '{project}'; run 'acquire' first")
        ctx.exit(ExitCode.NOT_FOUND)
    output.success(f"Recorded pids {frontend_pid}/{backend_pid} for {project}")


@click.command()
@project_option
@click.pass_context
@handle_exceptions
def release(ctx: click.Context, project: str | None) -> None:
    """Mark a project as stopped; its ports stay reserved for next time."""
    output = ctx.obj.output
    name = resolve_project(ctx, project)
    if not ctx.obj.coordinator.release(name):
        output.error(f"No lease for '{name}'")
        ctx.exit(ExitCode.NOT_FOUND)
    output.success(f"Released {name}")


@click.command()
@click.option(
    "--format",
    "-f",
    "format_type",
    type=click.Choice([OutputFormat.TEXT, OutputFormat.JSON]),
    default=OutputFormat.TEXT,
    help="Output format",
)
@click.pass_context
@handle_exceptions
def status(ctx: click.Context, format_type: str) -> None:
    """Show every lease in the registry."""
    output = ctx.obj.output
    coordinator = ctx.obj.coordinator
    snapshot = coordinator.leases()

    if format_type == OutputFormat.JSON:
        payload = {
            name: {**lease.to_dict(), "running": coordinator.is_running(lease)}
            for name, lease in sorted(snapshot.items())
        }
        output.plain(json.dumps(payload, indent=2))
        return

    if not snapshot:
        output.info("No leases registered")
        return

    output.plain(f"{Icons.LIST} Leases in {coordinator.registry.registry_file}")
    for name, lease in sorted(snapshot.items()):
        state = "running" if coordinator.is_running(lease) else "idle"
        output.plain(
            f"  {name:<24} frontend {lease.frontend_port:<6} "
            f"backend {lease.backend_port:<6} {state:<8} "
            f"last used {lease.to_dict()['last_used']}",
        )
