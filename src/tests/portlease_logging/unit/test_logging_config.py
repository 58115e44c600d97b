"""Unit tests for portlease_logging."""

import logging
from pathlib import Path

import pytest

from portlease_common.constants import EnvVars
from portlease_logging import configure_logger, get_log_file_path, get_log_level
from portlease_logging.formatters import ColoredFormatter, SafeFormatter
from portlease_logging.handlers import HalvingFileHandler


@pytest.fixture
def logger_name(request: pytest.FixtureRequest):
    """Unique logger name, handlers closed after the test."""
    name = f"portlease.test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


def _record(msg: str, args=None, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord("portlease", level, __file__, 1, msg, args, None)


class TestConfigureLogger:
    """Tests for configure_logger profiles."""

    def test_unknown_profile(self, logger_name: str) -> None:
        with pytest.raises(ValueError, match="Unknown profile"):
            configure_logger(logger_name, profile="server")

    def test_cli_profile_writes_file(self, logger_name: str, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.delenv(EnvVars.NO_FILE_LOGGING)
        log_file = tmp_path / "logs" / "cli.log"

        logger = configure_logger(logger_name, log_file=str(log_file), level="DEBUG")
        logger.debug("allocated %d", 3000)
        for handler in logger.handlers:
            handler.flush()

        assert "allocated 3000" in log_file.read_text()
        assert logger.propagate is False

    def test_cli_profile_without_file_logging(self, logger_name: str) -> None:
        logger = configure_logger(logger_name)

        assert [type(h) for h in logger.handlers] == [logging.NullHandler]

    def test_cli_profile_console(self, logger_name: str) -> None:
        logger = configure_logger(logger_name, to_console=True)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, ColoredFormatter)

    def test_reconfigure_replaces_handlers(self, logger_name: str) -> None:
        configure_logger(logger_name, to_console=True)
        logger = configure_logger(logger_name, to_console=True)

        assert len(logger.handlers) == 1

    def test_test_profile_propagates(self, logger_name: str) -> None:
        logger = configure_logger(logger_name, profile="test", level="warning")

        assert logger.propagate is True
        assert logger.level == logging.WARNING

    def test_level_from_environment(self, logger_name: str, monkeypatch) -> None:
        monkeypatch.setenv(EnvVars.LOG_LEVEL, "debug")

        assert get_log_level() == "DEBUG"
        assert configure_logger(logger_name).level == logging.DEBUG


class TestFormatters:
    """Tests for SafeFormatter and ColoredFormatter."""

    def test_safe_formatter_tolerates_bad_args(self) -> None:
        formatted = SafeFormatter("%(message)s").format(_record("port %d", ("x",)))

        assert "port %d" in formatted
        assert "x" in formatted

    def test_colored_formatter_plain(self) -> None:
        formatter = ColoredFormatter(use_colors=False)

        assert formatter.format(_record("hello")) == "INFO portlease: hello"

    def test_colored_formatter_styles_level(self) -> None:
        formatter = ColoredFormatter(use_colors=True)

        formatted = formatter.format(_record("hello", level=logging.ERROR))

        assert "\x1b[" in formatted
        assert formatted.endswith("portlease: hello")


class TestHalvingFileHandler:
    """Tests for size-bounded file logging."""

    def test_halves_when_too_large(self, tmp_path: Path) -> None:
        log_file = tmp_path / "big.log"
        log_file.write_text("".join(f"old line {i}\n" for i in range(200)))
        handler = HalvingFileHandler(str(log_file), max_bytes=1000)
        handler.setFormatter(logging.Formatter("%(message)s"))

        try:
            handler.emit(_record("fresh line"))
        finally:
            handler.close()

        content = log_file.read_text()
        assert "old line 0\n" not in content
        assert "old line 199\n" in content
        assert content.endswith("fresh line\n")
        assert content.startswith("old line ")

    def test_small_file_untouched(self, tmp_path: Path) -> None:
        log_file = tmp_path / "small.log"
        log_file.write_text("kept\n")
        handler = HalvingFileHandler(str(log_file), max_bytes=1000)
        handler.setFormatter(logging.Formatter("%(message)s"))

        try:
            handler.emit(_record("next"))
        finally:
            handler.close()

        assert log_file.read_text() == "kept\nnext\n"


def test_log_file_path_under_home(isolated_environment: Path) -> None:
    assert get_log_file_path("cli") == str(isolated_environment / ".portlease" / "log" / "cli.log")
