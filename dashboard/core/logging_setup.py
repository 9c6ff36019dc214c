from __future__ import annotations

import logging

from dashboard.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Attach one stream handler to the ``dashboard`` logger tree; safe to call repeatedly."""
    global _configured
    resolved = str(level or settings.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger("dashboard")
    root.setLevel(getattr(logging, resolved, logging.INFO))
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    _configured = True
