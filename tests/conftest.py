from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from pkgforge import plugins
from pkgforge_cli.catalog import PluginCatalog


@pytest.fixture(autouse=True)
def config_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config store at a per-test XDG directory."""
    home = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home))
    return home


@pytest.fixture
def catalog() -> PluginCatalog:
    return PluginCatalog.discover()


@pytest.fixture
def git_calls(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    """Record git invocations of the Git plugin instead of running git."""
    calls: list[list[str]] = []

    def fake_run_git(argv: list[str], *, cwd: Path) -> subprocess.CompletedProcess[str]:
        calls.append(list(argv))
        return subprocess.CompletedProcess(["git", *argv], 0, "", "")

    monkeypatch.setattr(plugins, "_run_git", fake_run_git)
    monkeypatch.setattr(plugins.shutil, "which", lambda name: f"/usr/bin/{name}")
    return calls
