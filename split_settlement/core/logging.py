"""Logging setup for the settlement service.

Modules log through ``logging.getLogger(__name__)``; this only decides where
records go and at which level. The level comes from ``LOG_LEVEL``.
"""

import logging
import sys
from typing import Optional

from split_settlement.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_logging_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """Attach a single stream handler to the root logger.

    Calling it again only updates the level.
    """
    global _logging_configured

    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)
    root = logging.getLogger()
    root.setLevel(numeric_level)

    if _logging_configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    _logging_configured = True
