"""Fixtures for CLI tests."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tests._fixtures.fakes import FakeLiveness, FakeProbe


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide Click CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run CLI commands from a project directory named ``shop``."""
    path = tmp_path / "shop"
    path.mkdir()
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def host(fake_probe: FakeProbe, fake_liveness: FakeLiveness):
    """Replace host queries made by CLI-built coordinators with fakes."""
    with (
        patch("portlease.coordinator.PortProbe", return_value=fake_probe),
        patch("portlease.resources.registry.LivenessChecker", return_value=fake_liveness),
    ):
        yield fake_probe, fake_liveness
