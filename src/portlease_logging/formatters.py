"""Log record formatters."""

import logging

import click

_LEVEL_COLORS = {
    logging.DEBUG: "cyan",
    logging.INFO: "green",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "magenta",
}

DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"


class SafeFormatter(logging.Formatter):
    """Formatter that never raises on mismatched ``%`` arguments."""

    def format(self, record: logging.LogRecord) -> str:
        try:
            return super().format(record)
        except (TypeError, ValueError):
            record.msg = f"{record.msg} {record.args}"
            record.args = None
            return super().format(record)


class ColoredFormatter(SafeFormatter):
    """Console formatter that colors the level name."""

    def __init__(self, fmt: str = CONSOLE_FORMAT, use_colors: bool = True) -> None:
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self.use_colors:
            return message
        color = _LEVEL_COLORS.get(record.levelno)
        if color is None:
            return message
        return message.replace(
            record.levelname,
            click.style(record.levelname, fg=color),
            1,
        )
