"""Error taxonomy for the proxy and the one-shot lister.

Malformed protocol messages are deliberately absent: they are passed through
unchanged and never raised.
"""

from __future__ import annotations


class ToolveilError(Exception):
    code = "toolveil_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigInvalid(ToolveilError, ValueError):
    code = "config_invalid"


class ProcessAlreadyRunning(ToolveilError):
    code = "process_already_running"


class SpawnFailure(ToolveilError):
    code = "spawn_failure"


class InitializeFailed(ToolveilError):
    code = "initialize_failed"


class ToolsListFailed(ToolveilError):
    code = "tools_list_failed"


class ListTimeout(ToolveilError):
    code = "list_timeout"
