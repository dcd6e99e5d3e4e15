from __future__ import annotations

import argparse
import os
import sys

from toolveil.cli.list_tools import configure_parser as configure_list_tools
from toolveil.cli.run import configure_parser as configure_run
from toolveil.errors import (
    ConfigInvalid,
    InitializeFailed,
    ListTimeout,
    SpawnFailure,
    ToolsListFailed,
    ToolveilError,
)


def build_parser() -> argparse.ArgumentParser:
    from toolveil import __version__

    parser = argparse.ArgumentParser(
        prog="toolveil",
        description="MCP stdio proxy that hides selected tools from clients",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Print version and exit",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print full traceback on errors (or set TOOLVEIL_TRACE=1)",
    )
    subparsers = parser.add_subparsers(dest="command")

    configure_run(subparsers)
    configure_list_tools(subparsers)

    return parser


def _tip_for(exc: BaseException) -> str:
    if isinstance(exc, SpawnFailure):
        return "Check that the target command is installed and on PATH."
    if isinstance(exc, ConfigInvalid):
        return "Pass the target command after the options, e.g. `toolveil run python server.py`."
    if isinstance(exc, ListTimeout):
        return "Raise --timeout or check that the target speaks MCP over stdio."
    if isinstance(exc, InitializeFailed | ToolsListFailed):
        return "The target server rejected the request; see its stderr output above."
    return "re-run with --trace to see the full traceback."


def _error_title(exc: BaseException, command: str | None) -> str:
    if command == "list-tools" and isinstance(exc, ToolveilError) and not isinstance(
        exc, ConfigInvalid
    ):
        return "Error listing tools"
    return type(exc).__name__


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 2

    want_trace = bool(getattr(args, "trace", False)) or os.environ.get("TOOLVEIL_TRACE") in {
        "1",
        "true",
        "TRUE",
        "yes",
        "YES",
    }
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        return 130
    except Exception as exc:
        if want_trace:
            from toolveil.cli.ui import error_console

            error_console.print_exception()
        else:
            from toolveil.cli.ui import print_error

            print_error(_error_title(exc, args.command), str(exc), tip=_tip_for(exc))
        return 1


def run() -> None:
    sys.exit(main())
