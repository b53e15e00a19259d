# graphclone/cli/main.py
import argparse
import sys as _sys
from typing import List, Optional

from ..errors import GraphcloneError
from ._common import make_logger
from .cmd_clone import add_clone_subparser
from .cmd_verify import add_verify_subparser


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="graphclone",
        description="Deep-clone pickled object graphs, keeping their cycles and shared references.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_clone_subparser(subparsers)
    add_verify_subparser(subparsers)
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    try:
        args.handler(args)
    except GraphcloneError as exc:
        log = make_logger(args.command, args)
        log.error("%s", exc)
        log.debug("%s failed", args.command, exc_info=True)
        _sys.exit(1)


if __name__ == "__main__":
    main()
