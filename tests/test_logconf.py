# tests/test_logconf.py
import io
import logging
import sys

from graphclone.logconf import configure_logger


def test_configure_logger_is_idempotent():
    log1 = configure_logger(level=logging.DEBUG, name="graphclone.cli.x")
    log2 = configure_logger(level=logging.INFO, name="graphclone.cli.y")

    root = logging.getLogger("graphclone")
    handlers = [h for h in root.handlers if isinstance(h, logging.StreamHandler)]
    assert len(handlers) == 1
    assert root.level == logging.INFO
    assert log1.name == "graphclone.cli.x" and log2.name == "graphclone.cli.y"


def test_handler_writes_to_the_current_stderr(monkeypatch):
    log = configure_logger(level=logging.INFO, name="graphclone.cli.z")
    buf = io.StringIO()
    monkeypatch.setattr(sys, "stderr", buf)

    log.warning("hello %s", "there")

    assert "[graphclone] WARNING: hello there" in buf.getvalue()
