#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Detail-based filter passes for the Rawfeed pipeline.

A FilterPass is a named rule set; the strict pass keeps only low-view
"people and things" footage, and the relaxed pass widens the numeric bounds
and swaps the category allow-list for a deny-list. Every predicate is a pure
function of one VideoMetadata record.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple

from models import VideoMetadata
from text_processing import normalize_text
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


# YouTube category ids (videoCategories.list, region independent for these)
CATEGORY_FILM_ANIMATION = "1"
CATEGORY_AUTOS_VEHICLES = "2"
CATEGORY_MUSIC = "10"
CATEGORY_PETS_ANIMALS = "15"
CATEGORY_SPORTS = "17"
CATEGORY_TRAVEL_EVENTS = "19"
CATEGORY_GAMING = "20"
CATEGORY_PEOPLE_BLOGS = "22"
CATEGORY_COMEDY = "23"
CATEGORY_ENTERTAINMENT = "24"
CATEGORY_NEWS_POLITICS = "25"
CATEGORY_HOWTO_STYLE = "26"
CATEGORY_SCIENCE_TECH = "28"
CATEGORY_NONPROFITS = "29"

PEOPLE_AND_THINGS_CATEGORIES: FrozenSet[str] = frozenset({
    CATEGORY_AUTOS_VEHICLES,
    CATEGORY_PETS_ANIMALS,
    CATEGORY_TRAVEL_EVENTS,
    CATEGORY_PEOPLE_BLOGS,
    CATEGORY_HOWTO_STYLE,
    CATEGORY_SCIENCE_TECH,
})

UNWANTED_CATEGORIES: FrozenSet[str] = frozenset({
    CATEGORY_FILM_ANIMATION,
    CATEGORY_MUSIC,
    CATEGORY_SPORTS,
    CATEGORY_GAMING,
    CATEGORY_COMEDY,
    CATEGORY_ENTERTAINMENT,
    CATEGORY_NEWS_POLITICS,
    CATEGORY_NONPROFITS,
})

# Professionally produced or promotional content
BRAND_PATTERN = re.compile(
    r"\b(?:"
    r"official|trailer|teaser|sponsor(?:ed)?|promo(?:tion(?:al)?)?|"
    r"label|records|vevo|music\s+video|lyrics?(?:\s+video)?|"
    r"episode|ep\.?\s*\d+|season\s*\d+|full\s+movie|"
    r"advert(?:isement)?|presented\s+by|in\s+partnership\s+with|"
    r"paid\s+partnership|brand\s+deal"
    r")\b"
    r"|(?:^|\s)#ad\b"
    r"|\s-\s+topic$",
    re.IGNORECASE,
)

UPLOAD_STATUS_PROCESSED = "processed"


@dataclass(frozen=True)
class FilterPass:
    """One rule set applied to fetched video metadata.

    Exactly one of `allowed_categories` / `denied_categories` is normally set;
    when both are None any category is accepted.
    """

    name: str
    min_duration_seconds: int
    max_duration_seconds: int
    max_views_exclusive: int
    allowed_categories: Optional[FrozenSet[str]] = None
    denied_categories: Optional[FrozenSet[str]] = None

    def category_ok(self, category_id: str) -> bool:
        if self.allowed_categories is not None and category_id not in self.allowed_categories:
            return False
        if self.denied_categories is not None and category_id in self.denied_categories:
            return False
        return True

    def rejection_reason(self, video: VideoMetadata) -> Optional[str]:
        """Return why `video` fails this pass, or None if it passes."""
        if not video.id:
            return "missing id"
        if not video.embeddable:
            return "not embeddable"
        if video.upload_status != UPLOAD_STATUS_PROCESSED:
            return f"upload status '{video.upload_status}'"
        if video.has_caption:
            return "has captions"
        duration = video.duration_seconds
        if not self.min_duration_seconds <= duration <= self.max_duration_seconds:
            return f"duration {duration}s"
        if video.view_count >= self.max_views_exclusive:
            return f"{video.view_count} views"
        if not self.category_ok(video.category_id):
            return f"category {video.category_id or 'unknown'}"
        if looks_branded(video):
            return "brand heuristic"
        return None

    def accepts(self, video: VideoMetadata) -> bool:
        return self.rejection_reason(video) is None

    def apply(self, videos: Iterable[VideoMetadata]) -> List[str]:
        """Return ids of the videos that pass, in input order."""
        kept: List[str] = []
        for video in videos:
            reason = self.rejection_reason(video)
            if reason is None:
                kept.append(video.id)
            else:
                logger.debug(f"{self.name} pass rejected {video.id}: {reason}", video_id=video.id, rule_pass=self.name)
        return kept


STRICT_PASS = FilterPass(
    name="strict",
    min_duration_seconds=20,
    max_duration_seconds=1200,
    max_views_exclusive=5000,
    allowed_categories=PEOPLE_AND_THINGS_CATEGORIES,
)

RELAXED_PASS = FilterPass(
    name="relaxed",
    min_duration_seconds=15,
    max_duration_seconds=1800,
    max_views_exclusive=15000,
    denied_categories=UNWANTED_CATEGORIES,
)


def looks_branded(video: VideoMetadata) -> bool:
    """True if the title, channel name or any tag matches the brand heuristic."""
    texts = (video.title, video.channel_title) + tuple(video.tags)
    return any(BRAND_PATTERN.search(normalize_text(text)) for text in texts if text)


def filter_with_fallback(videos: List[VideoMetadata], min_strict_results: int,
                         strict: FilterPass = STRICT_PASS,
                         relaxed: FilterPass = RELAXED_PASS) -> Tuple[List[str], int, Optional[int]]:
    """Run the strict pass and fall back to the relaxed pass when it keeps too few.

    Args:
        videos: Metadata records from the details call.
        min_strict_results: The relaxed pass runs iff strict keeps fewer than this.
        strict: Primary rule set.
        relaxed: Fallback rule set.

    Returns:
        tuple: (ids, strict_count, relaxed_count) where relaxed_count is None
               when the relaxed pass did not run.
    """
    strict_ids = strict.apply(videos)
    if len(strict_ids) >= min_strict_results:
        logger.info(f"Strict pass kept {len(strict_ids)}/{len(videos)} videos.", strict=len(strict_ids), total=len(videos))
        return strict_ids, len(strict_ids), None

    relaxed_ids = relaxed.apply(videos)
    logger.info(
        f"Strict pass kept {len(strict_ids)} (< {min_strict_results}); relaxed pass kept {len(relaxed_ids)}/{len(videos)}.",
        strict=len(strict_ids),
        relaxed=len(relaxed_ids),
        total=len(videos)
    )
    return relaxed_ids, len(strict_ids), len(relaxed_ids)
