"""Root logger setup for the CLI entry point."""

from __future__ import annotations

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure stderr logging once, at process start.

    Library modules only call ``logging.getLogger(__name__)``.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("whistle_gateway").setLevel(numeric)
