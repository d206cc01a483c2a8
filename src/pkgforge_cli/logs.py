from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "pkgforge"
_FORMAT = "%(levelname)s: %(message)s"


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Send ``pkgforge`` diagnostics to stderr and return the CLI logger.

    Engine modules log under the same ``pkgforge`` tree, so a single handler
    covers both. Calling this again replaces the previous handler.
    """
    root = logging.getLogger(ROOT_LOGGER)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False
    return root.getChild("cli")
