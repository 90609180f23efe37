#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Common utilities shared by the Rawfeed entry points (server, routes and CLI).
"""

import logging
import os
import re
from typing import Optional

from logging_config import StructuredLogger, logging_is_configured, setup_logging

logger = StructuredLogger(__name__)

_REGION_RE = re.compile(r"^[A-Za-z]{2}$")


def is_true(value: Optional[str]) -> bool:
    """Check if a string value represents a boolean True.

    Args:
        value: String value to check

    Returns:
        bool: True if the value represents a boolean True
    """
    if not value:
        return False
    return value.strip().lower() in ("true", "1", "yes", "y", "on")


def normalize_region(region: Optional[str]) -> Optional[str]:
    """Upper-cased two-letter region code, or None if absent or malformed."""
    if not region or not region.strip():
        return None
    candidate = region.strip()
    if not _REGION_RE.match(candidate):
        logger.warning(f"Ignoring malformed region hint: '{candidate[:10]}'")
        return None
    return candidate.upper()


def configure_logging_from_env() -> None:
    """Apply LOG_* environment variables to the logging setup."""
    log_level_console_str = os.environ.get("LOG_LEVEL_CONSOLE", "INFO").upper()
    log_level_file_str = os.environ.get("LOG_LEVEL_FILE", "DEBUG").upper()

    setup_logging(
        log_level_console=getattr(logging, log_level_console_str, logging.INFO),
        log_level_file=getattr(logging, log_level_file_str, logging.DEBUG),
        structured=is_true(os.environ.get("LOG_STRUCTURED", "true")),
        log_file=os.environ.get("LOG_FILE") or None,
    )


def ensure_logging_configured() -> None:
    """Configure logging from the environment unless a launcher already did.

    Serverless hosts import `main:app` directly, so server.py never runs there.
    """
    if not logging_is_configured():
        configure_logging_from_env()
