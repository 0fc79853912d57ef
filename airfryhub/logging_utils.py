"""
Logging setup shared by the app and the CLI.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(name)s %(levelname)s %(asctime)s %(message)s"
DATE_FORMAT = "%m/%d/%Y %I:%M:%S %p"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )
