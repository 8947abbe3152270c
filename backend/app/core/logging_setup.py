from __future__ import annotations

import logging

from backend.app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure le logger racine une seule fois (niveau via LOG_LEVEL)."""
    level_name = (level or settings.log_level).upper()
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(getattr(logging, level_name, logging.INFO))
        return

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
    )
