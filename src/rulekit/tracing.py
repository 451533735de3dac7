"""Logging helpers shared by the pipeline and the CLI."""

from __future__ import annotations

import logging
import sys
from typing import Any

LOG_FORMAT = "[%(name)s] %(levelname)s: %(message)s"


def trace(logger: logging.Logger, enabled: bool, msg: str, *args: Any) -> None:
    """Emit a pipeline trace message when the run's debug flag is set."""
    if enabled:
        logger.debug(msg, *args)


def configure_logging(debug: bool) -> None:
    """Configure root logging for a CLI invocation.

    Args:
        debug: Show DEBUG records when true, otherwise errors only
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.ERROR,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
