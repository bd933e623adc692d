"""Logging setup for the CLI and embedding hosts."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_HANDLER_NAME = "cakenav-rich"


def configure_logging(enabled: bool, verbose: bool = False) -> None:
    """Attach a Rich handler to the ``cakenav`` logger when *enabled*.

    Logging never changes resolution results; disabled means the package
    logger stays silent (no handler, level above CRITICAL).
    """
    logger = logging.getLogger("cakenav")
    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    if not enabled:
        logger.setLevel(logging.CRITICAL + 1)
        logger.propagate = False
        return

    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.set_name(_HANDLER_NAME)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
