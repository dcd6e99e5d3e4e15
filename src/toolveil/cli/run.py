from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal

from toolveil.cli.common import add_target_arguments, config_from_args, configure_logging
from toolveil.config import ProxyConfig, resolve_config_path
from toolveil.mcp import ToolFilterProxy

logger = logging.getLogger(__name__)


def configure_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("run", help="Run the tool-filtering MCP proxy")
    parser.set_defaults(func=run_proxy)
    add_target_arguments(parser)


def _install_signal_handlers(proxy: ToolFilterProxy, pending: set[asyncio.Task[None]]) -> None:
    loop = asyncio.get_running_loop()

    def request_stop() -> None:
        logger.info("Shutting down proxy server")
        task = loop.create_task(proxy.stop())
        pending.add(task)
        task.add_done_callback(pending.discard)

    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops; Ctrl-C then arrives as KeyboardInterrupt.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, request_stop)


async def _serve(config: ProxyConfig) -> None:
    proxy = ToolFilterProxy(config=config)
    stop_tasks: set[asyncio.Task[None]] = set()
    _install_signal_handlers(proxy, stop_tasks)
    try:
        returncode = await proxy.run()
        logger.info("Target server exited with code %s", returncode)
    finally:
        await proxy.stop()


def run_proxy(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)
    config = config_from_args(args)

    from toolveil.cli.ui import print_startup

    print_startup(config, resolve_config_path(args.config))
    asyncio.run(_serve(config))
    return 0
