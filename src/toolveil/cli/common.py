"""Arguments and setup shared by the ``run`` and ``list-tools`` commands."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path

from toolveil.config import ProxyConfig, load_proxy_config, split_patterns
from toolveil.errors import ConfigInvalid


# Ctrl-C, cancelled pump tasks and a client that hung up on stdout.
SHUTDOWN_NOISE: tuple[type[BaseException], ...] = (
    asyncio.CancelledError,
    KeyboardInterrupt,
    GeneratorExit,
    BrokenPipeError,
    ConnectionResetError,
)


def is_shutdown_noise(exc: BaseException) -> bool:
    if isinstance(exc, BaseExceptionGroup):
        return all(is_shutdown_noise(sub_exc) for sub_exc in exc.exceptions)
    return isinstance(exc, SHUTDOWN_NOISE)


class ShutdownNoiseFilter(logging.Filter):
    """Drop records whose traceback only says the session is ending."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not record.exc_info:
            return True
        exc = record.exc_info[1]
        return exc is None or not is_shutdown_noise(exc)


def configure_logging(verbose: bool = False) -> None:
    """Send logs to stderr through Rich; stdout is reserved for protocol traffic."""
    from rich.logging import RichHandler

    from toolveil.cli.ui import error_console

    level_name = "DEBUG" if verbose else os.environ.get("TOOLVEIL_LOG_LEVEL", "WARNING")
    level = getattr(logging, level_name.upper(), logging.WARNING)

    rich_handler = RichHandler(
        console=error_console, rich_tracebacks=False, markup=False, show_path=False
    )
    rich_handler.addFilter(ShutdownNoiseFilter())
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[rich_handler],
        force=True,
    )


def add_target_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=Path, help="Path to toolveil.toml")
    filters = parser.add_mutually_exclusive_group()
    filters.add_argument(
        "--enabled-tools",
        metavar="PATTERNS",
        help="Comma-separated tool names or globs to expose (e.g. 'add,get-*')",
    )
    filters.add_argument(
        "--disabled-tools",
        metavar="PATTERNS",
        help="Comma-separated tool names or globs to hide",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument(
        "target",
        metavar="COMMAND",
        nargs=argparse.REMAINDER,
        help="Target MCP server command and its arguments",
    )


def target_command(args: argparse.Namespace) -> list[str]:
    command = list(args.target or [])
    if command and command[0] == "--":
        command = command[1:]
    return command


def config_from_args(args: argparse.Namespace) -> ProxyConfig:
    """Merge the config file (if any) with command-line values.

    Raises:
        ConfigInvalid: If no target command is available or the filters conflict.
    """
    overrides = {
        "command": target_command(args),
        "include": split_patterns(args.enabled_tools) if args.enabled_tools is not None else None,
        "exclude": (
            split_patterns(args.disabled_tools) if args.disabled_tools is not None else None
        ),
        "response_timeout_s": getattr(args, "timeout", None),
    }
    try:
        return load_proxy_config(config_path=args.config, cli_overrides=overrides)
    except ConfigInvalid as e:
        if e.message == "No target command specified" and args.command == "list-tools":
            raise ConfigInvalid("No target command specified for list-tools") from e
        raise
