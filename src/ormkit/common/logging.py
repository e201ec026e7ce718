"""Root logger setup for ormkit entry points."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Install a stream handler on the root logger.

    Library modules only create named loggers and never call this. The ``ormkit`` CLI calls
    it once, passing ``logging.DEBUG`` when ``--debug`` is given so per-registration and
    per-flush messages from the change manager become visible.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
