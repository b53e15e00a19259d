# graphclone/logconf.py
"""
Console logging for the `graphclone` logger hierarchy.

Library modules only create module loggers (`graphclone.resolver`,
`graphclone.clone`, ...); the CLI calls `configure_logger` once per command.
"""
import logging
import sys

_FORMAT = "[graphclone] %(levelname)s: %(message)s"


class _StderrHandler(logging.StreamHandler):
    """Writes to whatever `sys.stderr` is at emit time (it may be swapped after setup)."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value) -> None:
        pass


def configure_logger(level: int = logging.INFO, name: str = "graphclone") -> logging.Logger:
    root = logging.getLogger("graphclone")
    if not any(isinstance(h, _StderrHandler) for h in root.handlers):
        handler = _StderrHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    return logging.getLogger(name)
