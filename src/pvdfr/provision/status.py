import logging

import click

logger = logging.getLogger(__name__)

LEVELS = {
    "info": ("INFO", "blue", logging.INFO),
    "success": ("SUCCESS", "green", logging.INFO),
    "warning": ("WARNING", "yellow", logging.WARNING),
    "error": ("ERROR", "red", logging.ERROR),
}


class Reporter:
    """Prints [INFO]/[SUCCESS]/[WARNING]/[ERROR] status lines for the operator."""

    def __init__(self, color=None):
        self.color = color

    def emit(self, level: str, message: str):
        label, fg, log_level = LEVELS[level]
        logger.log(log_level, message)
        click.secho(f"[{label}] ", fg=fg, nl=False, err=level == "error", color=self.color)
        click.echo(message, err=level == "error", color=self.color)

    def info(self, message: str):
        self.emit("info", message)

    def success(self, message: str):
        self.emit("success", message)

    def warning(self, message: str):
        self.emit("warning", message)

    def error(self, message: str):
        self.emit("error", message)

    def rule(self):
        click.echo("=" * 42)
