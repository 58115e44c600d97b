"""Start and stop the frontend/backend processes of a leased project."""

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

import psutil

from portlease.models import LeasePorts
from portlease_logging import get_cli_logger

logger = get_cli_logger(__name__)

POLL_INTERVAL_S = 0.2
DEFAULT_STOP_TIMEOUT_S = 5.0


@dataclass
class LaunchedProcess:
    """A started process and the port it was told to use."""

    name: str
    port: int
    process: subprocess.Popen

    @property
    def pid(self) -> int:
        return self.process.pid


class ProcessLauncher:
    """Run shell commands with the leased ports in their environment.

    Each command gets ``PORT`` set to its own port, plus ``FRONTEND_PORT``
    and ``BACKEND_PORT`` so either side can find the other.
    """

    def __init__(self, cwd: Path | None = None, log_dir: Path | None = None) -> None:
        self.cwd = cwd
        self.log_dir = log_dir
        self.processes: list[LaunchedProcess] = []

    def build_env(self, ports: LeasePorts, port: int) -> dict[str, str]:
        env = dict(os.environ)
        env["FRONTEND_PORT"] = str(ports.frontend_port)
        env["BACKEND_PORT"] = str(ports.backend_port)
        env["PORT"] = str(port)
        return env

    def start(self, name: str, command: str, ports: LeasePorts, port: int) -> LaunchedProcess:
        """Start ``command`` through the shell in its own session.

        Output goes to ``<log_dir>/<name>.log`` when a log directory is set,
        otherwise it is inherited from the CLI.
        """
        stdout = None
        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            stdout = (self.log_dir / f"{name}.log").open("ab")

        logger.debug("Starting %s on port %d: %s", name, port, command)
        try:
            process = subprocess.Popen(
                command,
                shell=True,
                cwd=self.cwd,
                env=self.build_env(ports, port),
                stdout=stdout,
                stderr=subprocess.STDOUT if stdout is not None else None,
                start_new_session=True,
            )
        finally:
            if stdout is not None:
                stdout.close()

        launched = LaunchedProcess(name=name, port=port, process=process)
        self.processes.append(launched)
        logger.info("Started %s (pid %d) on port %d", name, process.pid, port)
        return launched

    def wait(self) -> int:
        """Block until any started process exits; return its exit code."""
        while True:
            for launched in self.processes:
                code = launched.process.poll()
                if code is not None:
                    logger.info("%s exited with code %d", launched.name, code)
                    return code
            time.sleep(POLL_INTERVAL_S)

    def stop_all(self, timeout: float = DEFAULT_STOP_TIMEOUT_S) -> None:
        """Terminate every started process and its children."""
        for launched in reversed(self.processes):
            self._stop_tree(launched, timeout)
        self.processes.clear()

    def _stop_tree(self, launched: LaunchedProcess, timeout: float) -> None:
        if launched.process.poll() is not None:
            return
        try:
            parent = psutil.Process(launched.pid)
            tree = [*parent.children(recursive=True), parent]
        except psutil.NoSuchProcess:
            return

        for proc in tree:
            try:
                proc.terminate()
            except psutil.NoSuchProcess:
                continue

        _, alive = psutil.wait_procs(tree, timeout=timeout)
        for proc in alive:
            logger.warning("%s (pid %d) ignored SIGTERM, killing", launched.name, proc.pid)
            try:
                proc.kill()
            except psutil.NoSuchProcess:
                continue
        # Reap the direct child
        try:
            launched.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("%s (pid %d) did not exit", launched.name, launched.pid)
