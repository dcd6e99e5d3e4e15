"""Config loader for the toolveil proxy.

Search order: explicit path -> ./toolveil.toml -> platform config.
Uses stdlib tomllib (Python 3.11+). CLI overrides are applied to the raw data
before validation so the resulting ``ProxyConfig`` can stay frozen.
"""

from __future__ import annotations

import os
import platform
import tomllib
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from toolveil.config.settings import ServerIdentity, ToolFilterConfig
from toolveil.errors import ConfigInvalid

CONFIG_FILENAME = "toolveil.toml"


class TargetConfig(BaseModel):
    """The MCP server to spawn and proxy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    command: list[str] = Field(..., min_length=1, description="Executable followed by its args")

    @field_validator("command")
    @classmethod
    def _check_executable(cls, v: list[str]) -> list[str]:
        if not v[0].strip():
            raise ValueError("target executable cannot be empty")
        return v


class ProxyConfig(BaseModel):
    """Immutable configuration for one proxy or lister run."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    target: TargetConfig
    tools: ToolFilterConfig = Field(default_factory=ToolFilterConfig)
    server: ServerIdentity = Field(default_factory=ServerIdentity)
    response_timeout_s: float | None = Field(default=None, gt=0)

    @property
    def target_command(self) -> list[str]:
        return self.target.command

    @property
    def include_patterns(self) -> list[str] | None:
        return self.tools.include

    @property
    def exclude_patterns(self) -> list[str] | None:
        return self.tools.exclude

    @property
    def server_name(self) -> str:
        return self.server.name

    @property
    def server_version(self) -> str:
        return self.server.version


def get_platform_config_path() -> Path:
    """Return the platform-specific toolveil.toml path."""
    system = platform.system().lower()
    if system == "darwin":
        return Path.home() / "Library" / "Application Support" / "toolveil" / CONFIG_FILENAME
    if system == "windows":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / "toolveil" / CONFIG_FILENAME
        return Path.home() / "AppData" / "Roaming" / "toolveil" / CONFIG_FILENAME

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "toolveil" / CONFIG_FILENAME
    return Path.home() / ".config" / "toolveil" / CONFIG_FILENAME


def get_config_search_paths() -> list[Path]:
    """Return config search paths in priority order."""
    return [Path(".") / CONFIG_FILENAME, get_platform_config_path()]


def _find_config_file() -> Path | None:
    for path in get_config_search_paths():
        if path.exists():
            return path
    return None


def _parse_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def resolve_config_path(config_path: Path | None = None) -> Path | None:
    """Return the config file that would be loaded, if any."""
    if config_path:
        return config_path
    return _find_config_file()


def split_patterns(value: str) -> list[str]:
    """Split a comma-separated pattern list, dropping blanks."""
    return [item.strip() for item in value.split(",") if item.strip()]


def _build_tools_data(data: Mapping[str, Any]) -> dict[str, Any]:
    tools_data = dict(data.get("tools", {}))

    # Accept the CLI flag vocabulary as aliases.
    if "include" not in tools_data and "enabled" in tools_data:
        tools_data["include"] = tools_data.pop("enabled")
    if "exclude" not in tools_data and "disabled" in tools_data:
        tools_data["exclude"] = tools_data.pop("disabled")

    return tools_data


def _apply_cli_overrides(data: dict[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    command = overrides.get("command")
    if command:
        data["target"] = {**data.get("target", {}), "command": list(command)}

    # A filter given on the command line replaces the file's filter entirely.
    include = overrides.get("include")
    exclude = overrides.get("exclude")
    if include is not None or exclude is not None:
        data["tools"] = {"include": include, "exclude": exclude}

    if overrides.get("response_timeout_s") is not None:
        data["response_timeout_s"] = float(overrides["response_timeout_s"])

    return data


def _format_validation_error(error: ValidationError) -> str:
    lines = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"]) or "config"
        lines.append(f"  {field_path}: {item['msg']}")
    return "Configuration validation errors:\n" + "\n".join(lines)


def _validate(data: dict[str, Any], *, source: str | None = None) -> ProxyConfig:
    target = data.get("target")
    if not isinstance(target, Mapping) or not target.get("command"):
        raise ConfigInvalid("No target command specified")

    try:
        return ProxyConfig.model_validate(data)
    except ValidationError as e:
        message = _format_validation_error(e)
        if source:
            message = f"Invalid configuration in {source}:\n{message}"
        raise ConfigInvalid(message) from e


def build_proxy_config(
    command: Sequence[str],
    *,
    include: Sequence[str] | None = None,
    exclude: Sequence[str] | None = None,
    server_name: str | None = None,
    server_version: str | None = None,
    response_timeout_s: float | None = None,
) -> ProxyConfig:
    """Build a validated config from plain values.

    Raises:
        ConfigInvalid: If both filters are set or the command is empty.
    """
    server: dict[str, str] = {}
    if server_name is not None:
        server["name"] = server_name
    if server_version is not None:
        server["version"] = server_version

    data: dict[str, Any] = {
        "target": {"command": list(command)},
        "tools": {
            "include": list(include) if include is not None else None,
            "exclude": list(exclude) if exclude is not None else None,
        },
        "server": server,
        "response_timeout_s": response_timeout_s,
    }
    return _validate(data)


def load_proxy_config(
    config_path: Path | None = None, *, cli_overrides: Mapping[str, Any] | None = None
) -> ProxyConfig:
    """Load proxy configuration from a TOML file and CLI overrides.

    Args:
        config_path: Explicit path to config file. If None, searches default locations.
        cli_overrides: Optional CLI values (command, include, exclude,
            response_timeout_s) applied over the file contents.

    Raises:
        FileNotFoundError: If an explicit config_path is provided but does not exist.
        ConfigInvalid: If the merged configuration is invalid.
    """
    path: Path | None
    if config_path:
        if not config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found at explicitly provided path: {config_path}. "
                "Ensure the file exists or omit the argument to use default search paths."
            )
        path = config_path
    else:
        path = _find_config_file()

    data: dict[str, Any] = {}
    if path is not None:
        try:
            raw = _parse_toml(path)
        except tomllib.TOMLDecodeError as e:
            raise ConfigInvalid(f"Failed to parse configuration file at {path}: {e}") from e

        if "target" in raw:
            data["target"] = raw["target"]
        data["tools"] = _build_tools_data(raw)
        if "server" in raw:
            data["server"] = raw["server"]
        if "response_timeout_s" in raw:
            data["response_timeout_s"] = raw["response_timeout_s"]

    if cli_overrides:
        data = _apply_cli_overrides(data, cli_overrides)

    return _validate(data, source=str(path) if path is not None else None)
