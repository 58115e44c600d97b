"""Unit tests for ProcessLauncher."""

import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import psutil
import pytest

from portlease.models import LeasePorts
from portlease_cli.services import ProcessLauncher

PORTS = LeasePorts(3000, 8000)


def _python(code: str) -> str:
    return f'"{sys.executable}" -c "{code}"'


@pytest.mark.unit
class TestBuildEnv:
    """Tests for the child environment."""

    def test_ports_exported(self) -> None:
        env = ProcessLauncher().build_env(PORTS, 8000)

        assert env["FRONTEND_PORT"] == "3000"
        assert env["BACKEND_PORT"] == "8000"
        assert env["PORT"] == "8000"

    def test_parent_environment_kept(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHOP_DEBUG", "1")

        assert ProcessLauncher().build_env(PORTS, 3000)["SHOP_DEBUG"] == "1"


@pytest.mark.unit
class TestStart:
    """Tests for process start-up."""

    def test_start_passes_env_and_session(self, tmp_path: Path) -> None:
        launcher = ProcessLauncher(cwd=tmp_path)
        with patch("subprocess.Popen") as mock_popen:
            mock_popen.return_value.pid = 4242
            launched = launcher.start("backend", "serve", PORTS, 8000)

        kwargs = mock_popen.call_args.kwargs
        assert kwargs["shell"] is True
        assert kwargs["cwd"] == tmp_path
        assert kwargs["start_new_session"] is True
        assert kwargs["env"]["PORT"] == "8000"
        assert launched.pid == 4242
        assert launcher.processes == [launched]

    def test_log_dir_captures_output(self, tmp_path: Path) -> None:
        launcher = ProcessLauncher(log_dir=tmp_path / "logs")
        launcher.start("frontend", _python("import os; print(os.environ['PORT'])"), PORTS, 3000)

        assert launcher.wait() == 0
        assert (tmp_path / "logs" / "frontend.log").read_text().strip() == "3000"


@pytest.mark.unit
class TestWaitAndStop:
    """Tests for supervision."""

    def test_wait_returns_first_exit_code(self) -> None:
        launcher = ProcessLauncher()
        launcher.start("backend", _python("import time; time.sleep(30)"), PORTS, 8000)
        launcher.start("frontend", _python("import sys; sys.exit(3)"), PORTS, 3000)

        try:
            assert launcher.wait() == 3
        finally:
            launcher.stop_all(timeout=5)

        assert launcher.processes == []

    def test_stop_all_terminates_running(self) -> None:
        launcher = ProcessLauncher()
        launched = launcher.start("backend", _python("import time; time.sleep(30)"), PORTS, 8000)

        launcher.stop_all(timeout=5)

        assert launched.process.poll() is not None

    def test_stop_kills_processes_ignoring_terminate(self) -> None:
        launcher = ProcessLauncher()
        launched = MagicMock()
        launched.process.poll.return_value = None
        launched.pid = 4242
        stubborn = MagicMock(pid=4242)
        parent = MagicMock()
        parent.children.return_value = []
        launcher.processes.append(launched)

        with (
            patch("psutil.Process", return_value=parent),
            patch("psutil.wait_procs", return_value=([], [stubborn])),
        ):
            launcher.stop_all(timeout=0.1)

        parent.terminate.assert_called_once()
        stubborn.kill.assert_called_once()

    def test_stop_skips_vanished_process(self) -> None:
        launcher = ProcessLauncher()
        launched = MagicMock()
        launched.process.poll.return_value = None
        launcher.processes.append(launched)

        with (
            patch("psutil.Process", side_effect=psutil.NoSuchProcess(4242)),
            patch("psutil.wait_procs") as mock_wait,
        ):
            launcher.stop_all()

        mock_wait.assert_not_called()
