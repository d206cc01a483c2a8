from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Any

from pkgforge_cli.catalog import PluginCatalog
from pkgforge_cli.config import ConfigStore


@dataclass(frozen=True)
class AppContext:
    """Everything a command handler needs for one invocation."""

    catalog: PluginCatalog
    config: dict[str, Any]
    config_store: ConfigStore
    log: logging.Logger
    dry_run: bool = False
    parser: argparse.ArgumentParser | None = None
