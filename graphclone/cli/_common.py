# graphclone/cli/_common.py
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict

from ..config import CloneOptions, effective_section, load_layered_config
from ..logconf import configure_logger


def make_logger(cmd: str, args: argparse.Namespace) -> logging.Logger:
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    return configure_logger(level=level, name=f"graphclone.cli.{cmd}")


def options_from_args(args: argparse.Namespace, anchor: Path | None, log: logging.Logger) -> CloneOptions:
    """
    `[clone]` section of the layered config (searched upward from `anchor`),
    then CLI flags on top. Flags left at argparse.SUPPRESS are absent from `args`.
    """
    ctx = load_layered_config(anchor)
    section: Dict[str, Any] = dict(effective_section(ctx, "clone"))
    if ctx.source_path:
        log.info("config: %s", ctx.source_path)

    box = vars(args)
    if "leave_back_references" in box:
        section["leave_back_references"] = box["leave_back_references"]
    if "recursion_limit" in box:
        section["recursion_limit"] = box["recursion_limit"]
    return CloneOptions.from_mapping(section)


def add_opt_input(p: argparse.ArgumentParser):
    return p.add_argument("input", type=Path, help="pickle file holding the object graph")


def add_opt_clone_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--no-back-references",
        dest="leave_back_references",
        action="store_false",
        default=argparse.SUPPRESS,
        help="store clones directly instead of leaving back references for the resolver",
    )
    p.add_argument(
        "--recursion-limit",
        dest="recursion_limit",
        type=int,
        default=argparse.SUPPRESS,
        help="minimum interpreter recursion limit while cloning (default from config)",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
