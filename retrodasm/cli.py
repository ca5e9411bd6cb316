#!/usr/bin/env python3
"""Command line front end: disassemble the image named by a command file."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional

from .arch import available, get_architecture
from .config import DasmConfig, load_config
from .errors import ConfigurationError, DasmError
from .listing import ListingWriter, load_command_file
from .tracing import ListingTracer
from .xref import SymbolTable

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retrodasm", description="Table-driven retargetable disassembler"
    )
    parser.add_argument("arch", nargs="?", help="Target architecture")
    parser.add_argument("listfile", nargs="?", help="Command file describing the image")
    parser.add_argument("-o", "--output", type=str, help="Write the listing here (default stdout)")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)"
    )
    parser.add_argument("--trace", type=str, default=None, help="Perfetto trace path")
    parser.add_argument(
        "--check-stack",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Check deferred-unit stack balance after each instruction",
    )
    parser.add_argument(
        "--list-archs", action="store_true", help="List supported architectures and exit"
    )
    return parser


def _configure_logging(config: DasmConfig, verbose: int) -> None:
    level = config.logging_level
    if verbose == 1:
        level = min(level, logging.INFO)
    elif verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def run(args: argparse.Namespace, config: DasmConfig) -> str:
    arch = get_architecture(args.arch)
    symbols = SymbolTable()
    plan = load_command_file(args.listfile, symbols)
    try:
        data = plan.input_file.read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"failed to open input file {plan.input_file}") from exc
    logger.info("%s: %d bytes, %d segments", plan.input_file, len(data), len(plan.segments))

    tracer = ListingTracer()
    if config.trace_file:
        tracer.start(config.trace_file, title=f"retrodasm {arch.name}")
        tracer.instant(
            "Loader",
            "command file",
            {"segments": len(plan.segments), "labels": len(symbols.labels())},
        )
    try:
        writer = ListingWriter(
            arch, plan, symbols, data, check_stack=config.check_stack, tracer=tracer
        )
        return writer.render()
    finally:
        tracer.stop()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config().with_overrides(
        check_stack=args.check_stack, trace_file=args.trace
    )
    _configure_logging(config, args.verbose)

    if args.list_archs:
        for name in available():
            arch = get_architecture(name)
            print(f"{name:10} {arch.profile.description}")
        return 0
    if not args.arch or not args.listfile:
        parser.error("ARCH and LISTFILE are required")

    try:
        listing = run(args, config)
    except DasmError as exc:
        print(f"retrodasm :: Error :: {exc}", file=sys.stderr)
        return 1

    if args.output:
        Path(args.output).write_text(listing)
    else:
        sys.stdout.write(listing)
    return 0


if __name__ == "__main__":
    sys.exit(main())
