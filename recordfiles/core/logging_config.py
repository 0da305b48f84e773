"""
Root logger setup. Call configure_logging() once, at application startup.
"""
from __future__ import annotations

import logging
import sys

from recordfiles.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - [%(levelname)s] - %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=level or settings.LOG_LEVEL,
        format=LOG_FORMAT,
        stream=sys.stdout,
    )
    # Silence noisy libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("s3transfer").setLevel(logging.WARNING)
