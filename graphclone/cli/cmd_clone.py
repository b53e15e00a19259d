# graphclone/cli/cmd_clone.py
from __future__ import annotations

import argparse
from pathlib import Path

from ..clone import clone_with_state
from ..snapshot import dump_graph, load_graph
from ..topology import assert_isomorphic
from ._common import add_opt_clone_flags, add_opt_input, make_logger, options_from_args


def _handle(args: argparse.Namespace) -> None:
    log = make_logger("clone", args)
    src: Path = args.input
    options = options_from_args(args, src.parent, log)

    graph = load_graph(src)
    result = clone_with_state(graph, options=options)
    assert_isomorphic(graph, result.clone)

    dump_graph(result.clone, args.output)
    log.info(
        "cloned %d container(s), redirected %d back reference(s) -> %s",
        result.containers_cloned, result.stale_refs_left, args.output,
    )


def add_clone_subparser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("clone", help="deep-clone a pickled object graph")
    add_opt_input(p)
    p.add_argument("-o", "--output", type=Path, required=True, help="where to write the cloned graph")
    add_opt_clone_flags(p)
    p.set_defaults(handler=_handle)
