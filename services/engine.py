#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Feed Engine for Rawfeed.

Orchestrates one feed request: choose a query, gather candidate ids from one
or more concurrent searches (widening the recency window when too few come
back), fetch their details in one batch, filter them strict-then-relaxed, and
shuffle the survivors.
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence

# Imports from this package
from config import config
from models import FeedOutcome, UpstreamResult, VideoMetadata
from services.filters import RELAXED_PASS, STRICT_PASS, FilterPass, filter_with_fallback
from services.youtube_api import STEP_DETAILS, STEP_SEARCH, YouTubeAPIClient
from utils import performance_timer
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

# Seed phrases biased toward ordinary, unproduced footage
SEED_QUERIES: Sequence[str] = (
    "iphone vertical vlog",
    "walking tour today",
    "city street night b-roll",
    "home video",
    "camcorder raw footage",
    "dashcam night",
    "travel diary",
    "my first vlog",
    "backyard birds",
    "driving around town",
    "rainy day window",
    "cooking at home no talking",
    "dog at the park",
    "fixing my bike",
    "quiet morning routine",
)

LIVE_BROADCAST_NONE = "none"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def extract_candidate_ids(items: List[dict]) -> List[str]:
    """Ids of non-live search items, in response order.

    An item counts as live unless snippet.liveBroadcastContent is exactly 'none'.
    """
    ids: List[str] = []
    for item in items:
        snippet = item.get("snippet") or {}
        if snippet.get("liveBroadcastContent") != LIVE_BROADCAST_NONE:
            continue
        video_id = (item.get("id") or {}).get("videoId")
        if video_id:
            ids.append(video_id)
    return ids


class FeedEngine:
    """Orchestrator for building one feed.

    Randomness (seed choice, shuffle) comes from the injected `rng` and the
    clock from `clock`, so tests can pin both.
    """

    def __init__(self, api_client: YouTubeAPIClient,
                 rng: Optional[random.Random] = None,
                 clock: Callable[[], datetime] = utc_now,
                 seeds: Sequence[str] = SEED_QUERIES,
                 strict_pass: FilterPass = STRICT_PASS,
                 relaxed_pass: FilterPass = RELAXED_PASS):
        """Initialize the feed engine.

        Args:
            api_client: Client for the YouTube API (one per request).
            rng: Random source for seed selection and shuffling.
            clock: Returns the current aware UTC time.
            seeds: Fallback queries when the caller supplies none.
            strict_pass: Primary filter rule set.
            relaxed_pass: Fallback filter rule set.
        """
        if not seeds:
            raise ValueError("At least one seed query is required")
        self.api_client = api_client
        self.rng = rng or random.Random()
        self.clock = clock
        self.seeds = tuple(seeds)
        self.strict_pass = strict_pass
        self.relaxed_pass = relaxed_pass

    # --- Query Selection ---

    def select_query(self, query: Optional[str] = None) -> str:
        """Return the caller's query if it has content, else a random seed."""
        if query is not None and query.strip():
            return query.strip()
        return self.rng.choice(self.seeds)

    def _extra_seeds(self, primary: str, count: int) -> List[str]:
        pool = [seed for seed in self.seeds if seed != primary]
        count = max(0, min(count, len(pool)))
        return self.rng.sample(pool, count) if count else []

    # --- Candidate Gathering ---

    async def gather_candidates(self, queries: List[str], region: Optional[str],
                                outcome: FeedOutcome) -> List[str]:
        """Search every query concurrently, widening the window while too few ids come back.

        Search results are appended to `outcome.search_results`; a window whose
        calls all fail stops the widening.

        Returns:
            list: De-duplicated candidate ids, capped at MAX_CANDIDATES.
        """
        candidates: Dict[str, None] = {}  # insertion-ordered set

        for lookback_hours in config.LOOKBACK_HOURS:
            published_after = self.clock() - timedelta(hours=lookback_hours)
            results: List[UpstreamResult] = await asyncio.gather(*[
                self.api_client.search_videos(q, published_after, region=region)
                for q in queries
            ])
            outcome.search_results.extend(results)

            if not any(r.ok for r in results):
                logger.warning(f"All {len(results)} search call(s) failed for {lookback_hours}h window.", lookback_hours=lookback_hours)
                break
            outcome.lookback_hours = lookback_hours

            for result in results:
                if not result.ok:
                    continue
                for video_id in extract_candidate_ids(result.items):
                    if len(candidates) >= config.MAX_CANDIDATES:
                        break
                    candidates.setdefault(video_id, None)

            logger.info(
                f"{len(candidates)} candidate(s) after {lookback_hours}h window.",
                lookback_hours=lookback_hours,
                candidates=len(candidates)
            )
            if len(candidates) >= config.MIN_CANDIDATES:
                break

        return list(candidates)

    # --- Shuffle & Truncate ---

    def shuffle_and_truncate(self, ids: List[str], limit: Optional[int] = None) -> List[str]:
        """Unbiased random permutation of `ids` (a copy), cut to `limit` entries."""
        limit = config.MAX_OUTPUT if limit is None else limit
        shuffled = list(ids)
        self.rng.shuffle(shuffled)
        return shuffled[:limit]

    # --- Full pipeline ---

    async def build_feed(self, query: Optional[str] = None, region: Optional[str] = None) -> FeedOutcome:
        """Run the whole pipeline once.

        Never raises for upstream failures: they show up as `failed_step` on
        the returned outcome with an empty id list.
        """
        caller_query = query is not None and bool(query.strip())
        primary = self.select_query(query)
        queries = [primary]
        if not caller_query:
            queries.extend(self._extra_seeds(primary, config.EXTRA_SEED_COUNT))

        outcome = FeedOutcome(query=primary)
        logger.info(f"Building feed for '{primary[:60]}' with {len(queries)} search seed(s).", query=primary[:60], seeds=len(queries), region=region)

        with performance_timer("build_feed", threshold_ms=2000.0):
            candidates = await self.gather_candidates(queries, region, outcome)
            outcome.candidate_count = len(candidates)

            if not any(r.ok for r in outcome.search_results):
                outcome.failed_step = STEP_SEARCH
                return outcome
            if not candidates:
                return outcome

            details = await self.api_client.get_video_details(candidates)
            outcome.details_result = details
            if not details.ok:
                outcome.failed_step = STEP_DETAILS
                return outcome

            videos = [VideoMetadata.from_api_response(item) for item in details.items]
            outcome.detail_count = len(videos)

            filtered, outcome.strict_count, outcome.relaxed_count = filter_with_fallback(
                videos,
                config.MIN_STRICT_RESULTS,
                strict=self.strict_pass,
                relaxed=self.relaxed_pass,
            )
            outcome.ids = self.shuffle_and_truncate(filtered)

        logger.info(
            f"Feed ready: {len(outcome.ids)} id(s) from {outcome.candidate_count} candidate(s).",
            output=len(outcome.ids),
            candidates=outcome.candidate_count,
            details=outcome.detail_count,
            strict=outcome.strict_count,
            relaxed=outcome.relaxed_count
        )
        return outcome
