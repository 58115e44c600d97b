"""Root pytest configuration and shared fixtures for the portlease test suite."""

import sys
from collections.abc import Generator
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from portlease_common.constants import EnvVars  # noqa: E402
from tests._fixtures.fakes import FakeLiveness, FakeProbe  # noqa: E402

_ISOLATED_ENV_VARS = (
    EnvVars.REGISTRY_DIR,
    EnvVars.LOCK_TIMEOUT,
    EnvVars.FORCE_BREAK_LOCK,
    EnvVars.START_STRATEGY,
    EnvVars.LOG_LEVEL,
    EnvVars.FRONTEND_START_PORT,
    EnvVars.BACKEND_START_PORT,
)


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[Path, None, None]:
    """Point HOME at a temp dir and clear portlease variables.

    Keeps user config files, the default registry and log files of the
    machine running the tests out of reach.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv(EnvVars.NO_FILE_LOGGING, "1")
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield home


@pytest.fixture
def registry_dir(tmp_path: Path) -> Path:
    """Isolated registry directory."""
    path = tmp_path / "registry"
    path.mkdir()
    return path


@pytest.fixture
def fake_probe() -> FakeProbe:
    """Probe reporting no listeners until told otherwise."""
    return FakeProbe()


@pytest.fixture
def fake_liveness() -> FakeLiveness:
    """Liveness checker reporting every pid dead until told otherwise."""
    return FakeLiveness()
