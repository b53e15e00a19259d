# graphclone/snapshot.py
"""Pickle I/O for the command line: object graphs in, clones out."""
from __future__ import annotations

import logging
import os
import pickle
import tempfile
from pathlib import Path
from typing import IO, Any, Callable

from .errors import SnapshotError

log = logging.getLogger("graphclone.snapshot")


def _atomic_write(path: Path, *, mode: str, write_fn: Callable[[IO[Any]], None]) -> None:
    """
    Write to `path` atomically:
      - create parent directory,
      - write to a temporary file in the same directory,
      - flush + fsync,
      - os.replace onto the final path,
      - remove the temporary file on failure.
    """
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(mode, delete=False, dir=str(path.parent)) as tmp:
            tmp_name = tmp.name
            write_fn(tmp)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def load_graph(path: Path) -> Any:
    """Load and return the pickled object graph stored at `path`."""
    try:
        with path.open("rb") as f:
            return pickle.load(f)
    except FileNotFoundError as exc:
        raise SnapshotError(f"no such snapshot: {path}") from exc
    except (OSError, pickle.UnpicklingError, EOFError, AttributeError, ImportError) as exc:
        raise SnapshotError(f"cannot unpickle {path}: {exc}") from exc


def dump_graph(obj: Any, path: Path) -> None:
    """Serialize `obj` to `path` atomically using pickle (cycles are preserved by pickle)."""
    try:
        _atomic_write(
            path,
            mode="wb",
            write_fn=lambda tmp: pickle.dump(obj, tmp, protocol=pickle.HIGHEST_PROTOCOL),
        )
    except (OSError, pickle.PicklingError, TypeError, AttributeError) as exc:
        raise SnapshotError(f"cannot write {path}: {exc}") from exc
    log.info("wrote %s", path)
