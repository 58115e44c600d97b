"""Run a project's frontend and backend on leased ports."""

from pathlib import Path

import click

from portlease_cli.commands.leases import project_option, resolve_project
from portlease_cli.core.constants import Icons
from portlease_cli.core.decorators import handle_exceptions
from portlease_cli.services import ProcessLauncher
from portlease_logging import get_cli_logger

logger = get_cli_logger(__name__)


@click.command()
@project_option
@click.option("--frontend", "frontend_cmd", required=True, help="Shell command starting the frontend")
@click.option("--backend", "backend_cmd", required=True, help="Shell command starting the backend")
@click.option("--frontend-start", type=click.IntRange(1, 65535), help="First frontend port to try")
@click.option("--backend-start", type=click.IntRange(1, 65535), help="First backend port to try")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write <name>.log files here instead of inheriting the terminal",
)
@click.pass_context
@handle_exceptions
def run(
    ctx: click.Context,
    project: str | None,
    frontend_cmd: str,
    backend_cmd: str,
    frontend_start: int | None,
    backend_start: int | None,
    log_dir: Path | None,
) -> None:
    """Acquire ports, start both servers, and release the lease on exit.

    \b
    Each command sees PORT (its own port) and FRONTEND_PORT/BACKEND_PORT.
    Stopping with Ctrl-C terminates both process trees.
    """  # noqa: W605
    output = ctx.obj.output
    coordinator = ctx.obj.coordinator
    name = resolve_project(ctx, project)
    ports = coordinator.acquire(name, frontend_start, backend_start)
    launcher = ProcessLauncher(cwd=ctx.obj.project_dir, log_dir=log_dir)
    exit_code = 0
    try:
        backend = launcher.start("backend", backend_cmd, ports, ports.backend_port)
        frontend = launcher.start("frontend", frontend_cmd, ports, ports.frontend_port)
        coordinator.record_pids(name, frontend.pid, backend.pid)

        output.plain(f"{Icons.ROCKET} {name} is starting")
        output.plain(f"Backend:  http://localhost:{ports.backend_port}  (pid: {backend.pid})")
        output.plain(f"Frontend: http://localhost:{ports.frontend_port}  (pid: {frontend.pid})")

        try:
            exit_code = launcher.wait()
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping %s", name)
    finally:
        output.plain(f"{Icons.STOP} Stopping servers...")
        launcher.stop_all()
        coordinator.release(name)

    if exit_code != 0:
        ctx.exit(exit_code)
