"""Logging setup for the server and the CLI.

Development runs get Rich-formatted output with short request lines;
production runs get plain timestamped lines and combined-style access logs.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


ACCESS_LOGGER = "portfolio.access"


def configure_logging(*, dev: bool = True, verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route all log records through a single handler on the root logger."""

    level = logging.DEBUG if verbose else logging.INFO

    if dev:
        handler: logging.Handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # werkzeug prints its own access lines; ours replace them
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
