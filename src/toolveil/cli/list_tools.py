from __future__ import annotations

import argparse
import asyncio

from toolveil.cli.common import add_target_arguments, config_from_args, configure_logging
from toolveil.mcp import format_tool_line, list_tools


def configure_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser(
        "list-tools", help="Print the tools the target exposes after filtering"
    )
    parser.set_defaults(func=run_list_tools)
    parser.add_argument(
        "--timeout",
        type=float,
        metavar="SECONDS",
        help="Give up if the target does not answer a request in time (default: wait forever)",
    )
    add_target_arguments(parser)


def run_list_tools(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)
    config = config_from_args(args)

    tools = asyncio.run(list_tools(config))
    for tool in tools:
        print(format_tool_line(tool), flush=True)
    return 0
