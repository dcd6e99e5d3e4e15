"""Tests for platform config path detection."""

from __future__ import annotations

import platform
from pathlib import Path
from typing import Any

from toolveil.config import get_platform_config_path, load_proxy_config, resolve_config_path
from toolveil.config.loader import get_config_search_paths


def test_get_platform_config_path_darwin(monkeypatch: Any) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Darwin")
    path = get_platform_config_path()
    assert path == (Path.home() / "Library" / "Application Support" / "toolveil" / "toolveil.toml")


def test_get_platform_config_path_linux(monkeypatch: Any) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", "/tmp/config")
    path = get_platform_config_path()
    assert path == Path("/tmp/config") / "toolveil" / "toolveil.toml"


def test_get_platform_config_path_linux_without_xdg(monkeypatch: Any) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Linux")
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    path = get_platform_config_path()
    assert path == Path.home() / ".config" / "toolveil" / "toolveil.toml"


def test_get_platform_config_path_windows(monkeypatch: Any) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Windows")
    monkeypatch.setenv("APPDATA", "C:/Users/Test/AppData/Roaming")
    path = get_platform_config_path()
    assert path == Path("C:/Users/Test/AppData/Roaming") / "toolveil" / "toolveil.toml"


def test_search_paths_prefer_working_directory(monkeypatch: Any) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", "/tmp/config")
    assert get_config_search_paths() == [
        Path("toolveil.toml"),
        Path("/tmp/config") / "toolveil" / "toolveil.toml",
    ]


def test_darwin_config_is_loaded_with_its_filter(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Darwin")
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")
    monkeypatch.chdir(tmp_path)
    config_file = tmp_path / "home" / "Library" / "Application Support" / "toolveil"
    config_file.mkdir(parents=True)
    (config_file / "toolveil.toml").write_text(
        '[target]\ncommand = ["uvx", "mcp-server-git"]\n\n[tools]\ndisabled = ["git_push"]\n'
    )

    config = load_proxy_config()

    assert config.target_command == ["uvx", "mcp-server-git"]
    assert config.exclude_patterns == ["git_push"]


def test_working_directory_config_shadows_platform_config(
    monkeypatch: Any, tmp_path: Path
) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    platform_file = tmp_path / "xdg" / "toolveil" / "toolveil.toml"
    platform_file.parent.mkdir(parents=True)
    platform_file.write_text('[target]\ncommand = ["from-xdg"]\n')

    assert resolve_config_path() == platform_file

    (tmp_path / "toolveil.toml").write_text('[target]\ncommand = ["from-cwd"]\n')

    assert resolve_config_path() == Path("toolveil.toml")
    assert resolve_config_path(tmp_path / "explicit.toml") == tmp_path / "explicit.toml"


def test_no_config_file_anywhere(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.setattr(platform, "system", lambda: "Windows")
    monkeypatch.setenv("APPDATA", str(tmp_path / "appdata"))
    monkeypatch.chdir(tmp_path)

    assert resolve_config_path() is None
