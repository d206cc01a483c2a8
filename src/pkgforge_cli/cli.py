from __future__ import annotations

import sys

from pkgforge_cli.catalog import PluginCatalog
from pkgforge_cli.config import ConfigStore, default_config, merge_config
from pkgforge_cli.context import AppContext
from pkgforge_cli.dispatch import dispatch
from pkgforge_cli.errors import CatalogError, UsageError
from pkgforge_cli.logs import configure_logging
from pkgforge_cli.models import Command
from pkgforge_cli.parser import build_parser


def run(argv: list[str] | None = None) -> int:
    try:
        catalog = PluginCatalog.discover()
    except CatalogError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1

    parser = build_parser(catalog)
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        print(f"ERROR: {e.message}", file=sys.stderr)
        return 1
    log = configure_logging(bool(getattr(args, "verbose", False)))

    store = ConfigStore()
    effective = merge_config(default_config(), store.load_or_default(log))
    ctx = AppContext(
        catalog=catalog,
        config=effective,
        config_store=store,
        log=log,
        dry_run=bool(getattr(args, "dry_run", False)),
        parser=parser,
    )

    result = dispatch(Command.from_args(args), vars(args), ctx)
    if result.success:
        if result.message:
            print(result.message)
    elif result.message:
        log.error("%s", result.message)
    return result.exit_code


def main(argv: list[str] | None = None) -> None:
    raise SystemExit(run(argv))


if __name__ == "__main__":
    main()
