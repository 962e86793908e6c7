import logging
import sys


logger = logging.getLogger("sourcecache")


class _StdoutHandler(logging.StreamHandler):
    """Writes to whatever sys.stdout is at emit time (e.g. click's CliRunner)."""

    def __init__(self):
        super().__init__(sys.stdout)

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, value):
        pass


class _CliFormatter(logging.Formatter):
    """Plain messages for progress, prefixed with the level for problems."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname.lower()}: {message}"
        return message


def configure_logging(debug: bool):
    """
    Configures the sourcecache logger based on the debug flag.

    A single handler is installed, calling again only changes the level.
    """
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if any(isinstance(h, _StdoutHandler) for h in logger.handlers):
        return

    handler = _StdoutHandler()
    handler.setFormatter(_CliFormatter("%(message)s"))
    logger.addHandler(handler)
