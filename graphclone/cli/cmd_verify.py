# graphclone/cli/cmd_verify.py
from __future__ import annotations

import argparse

from ..clone import clone_with_state
from ..errors import TopologyMismatch
from ..snapshot import load_graph
from ..topology import compare_topology
from ._common import add_opt_clone_flags, add_opt_input, make_logger, options_from_args


def _handle(args: argparse.Namespace) -> None:
    log = make_logger("verify", args)
    options = options_from_args(args, args.input.parent, log)

    graph = load_graph(args.input)
    result = clone_with_state(graph, options=options)
    report = compare_topology(graph, result.clone)

    print(f"containers cloned    : {result.containers_cloned}")
    print(f"back refs redirected: {result.stale_refs_left}")
    print(report.render())
    if not report.ok:
        raise TopologyMismatch(problems=report.problems())


def add_verify_subparser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser("verify", help="clone a pickled graph and check its topology")
    add_opt_input(p)
    add_opt_clone_flags(p)
    p.set_defaults(handler=_handle)
