"""Logging setup for the command line entry points."""

from __future__ import annotations

import logging

_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once.

    Long scans and applies log one line per failed item, so the format stays
    terse. Pass ``force=True`` to reconfigure from tests.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def level_for_verbosity(verbosity: int) -> int:
    """Map a repeated ``-v`` count onto a logging level (``0`` means INFO)."""

    index = max(0, min(verbosity + 1, len(_VERBOSITY_LEVELS) - 1))
    return _VERBOSITY_LEVELS[index]
