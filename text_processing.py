#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Text and value normalisation helpers for Rawfeed.

Pure functions, cached where the same inputs recur across requests
(durations and titles repeat a lot between overlapping searches).
"""

import functools
import re
from datetime import datetime, timedelta
from typing import Optional

import emoji
import isodate

from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
# Reference start for calendar durations (years/months) that have no fixed length
_DURATION_EPOCH = datetime(1970, 1, 1)


@functools.lru_cache(maxsize=1024)
def iso_duration_to_seconds(duration_iso: Optional[str]) -> int:
    """Convert an ISO 8601 duration (e.g. 'PT1H2M3S') to whole seconds.

    Args:
        duration_iso: Duration string from contentDetails.duration.

    Returns:
        int: Total seconds, or 0 when the value is empty or cannot be parsed.
    """
    if not duration_iso:
        return 0
    try:
        parsed = isodate.parse_duration(duration_iso)
    except (isodate.ISO8601Error, TypeError, ValueError) as e:
        logger.debug(f"Could not parse video duration '{duration_iso}': {e}")
        return 0

    if isinstance(parsed, isodate.Duration):
        parsed = parsed.totimedelta(start=_DURATION_EPOCH)
    if not isinstance(parsed, timedelta):
        return 0
    return max(0, int(parsed.total_seconds()))


@functools.lru_cache(maxsize=1024)
def normalize_text(text: Optional[str]) -> str:
    """Strip emoji and collapse whitespace so keyword heuristics see plain words.

    Args:
        text: Title, channel name or tag.

    Returns:
        str: Normalised text ('' for None).
    """
    if not text:
        return ""
    without_emoji = emoji.replace_emoji(text, replace=" ")
    return _WHITESPACE_RE.sub(" ", without_emoji).strip()


def format_rfc3339(moment: datetime) -> str:
    """Format an aware datetime the way the Search API expects publishedAfter."""
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
