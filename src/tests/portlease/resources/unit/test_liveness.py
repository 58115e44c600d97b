"""Unit tests for LivenessChecker."""

import os
from unittest.mock import MagicMock, patch

import psutil
import pytest

from portlease.resources.liveness import LivenessChecker


class TestIsAlive:
    """Tests for LivenessChecker.is_alive."""

    @pytest.fixture
    def checker(self) -> LivenessChecker:
        return LivenessChecker()

    @pytest.mark.parametrize("pid", [None, 0, -1])
    def test_absent_or_invalid_pid_is_dead(self, checker: LivenessChecker, pid) -> None:
        """No pid, or one that would address a process group, is not alive."""
        with patch("os.kill") as mock_kill:
            assert checker.is_alive(pid) is False
        mock_kill.assert_not_called()

    def test_current_process_is_alive(self, checker: LivenessChecker) -> None:
        """The test process itself is alive."""
        assert checker.is_alive(os.getpid()) is True

    def test_missing_process_is_dead(self, checker: LivenessChecker) -> None:
        """ProcessLookupError means the pid is gone."""
        with patch("os.kill", side_effect=ProcessLookupError):
            assert checker.is_alive(4242) is False

    def test_foreign_process_is_dead(self, checker: LivenessChecker) -> None:
        """A pid we may not signal does not count as ours."""
        with patch("os.kill", side_effect=PermissionError):
            assert checker.is_alive(4242) is False

    def test_zombie_is_dead(self, checker: LivenessChecker) -> None:
        """Zombies have exited and only wait to be reaped."""
        zombie = MagicMock()
        zombie.status.return_value = psutil.STATUS_ZOMBIE

        with patch("os.kill"), patch("psutil.Process", return_value=zombie):
            assert checker.is_alive(4242) is False

    def test_access_denied_after_signal_is_alive(self, checker: LivenessChecker) -> None:
        """If signal 0 was delivered, an unreadable status still means alive."""
        with (
            patch("os.kill"),
            patch("psutil.Process", side_effect=psutil.AccessDenied(4242)),
        ):
            assert checker.is_alive(4242) is True

    def test_vanished_between_checks_is_dead(self, checker: LivenessChecker) -> None:
        """A process exiting between the two checks is dead."""
        with (
            patch("os.kill"),
            patch("psutil.Process", side_effect=psutil.NoSuchProcess(4242)),
        ):
            assert checker.is_alive(4242) is False

    def test_windows_uses_pid_exists(self, checker: LivenessChecker) -> None:
        """On Windows os.kill is never used."""
        with (
            patch("portlease.resources.liveness.os.name", "nt"),
            patch("os.kill") as mock_kill,
            patch("psutil.pid_exists", return_value=True) as mock_exists,
        ):
            assert checker.is_alive(4242) is True

        mock_kill.assert_not_called()
        mock_exists.assert_called_once_with(4242)
