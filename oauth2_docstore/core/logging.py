"""
Logging utilities for the document store and its operational scripts.

Provides a consistent logging format and keeps the AWS SDK loggers quiet.
"""

import logging
import sys

_NOISY_LOGGERS = ("boto3", "botocore", "urllib3")


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with a sensible default format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging"]
