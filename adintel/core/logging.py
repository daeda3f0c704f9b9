from __future__ import annotations

import logging

from adintel.core.config import settings


# Centralized app logging configuration (format + level).
def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    # httpx logs every request at INFO; keep collaborator chatter out of app logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
