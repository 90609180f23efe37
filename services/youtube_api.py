#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
YouTube Data API v3 Client for Rawfeed.

Wraps the two endpoints the feed needs (search.list and videos.list). Each
public method returns an UpstreamResult instead of raising, so a failed call
is an explicit branch for the caller.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from googleapiclient.discovery import Resource, build
from googleapiclient.http import build_http

# Imports from this package
from config import config
from exceptions import APIConfigurationError, UpstreamError
from models import UpstreamResult
from text_processing import format_rfc3339
from utils import RetryableRequest, SecureApiKeyManager, performance_timer
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

STEP_SEARCH = "search"
STEP_DETAILS = "details"


class YouTubeAPIClient:
    """Client for the search.list and videos.list endpoints.

    The underlying discovery Resource is synchronous; calls run in the default
    executor, each with its own httplib2 transport since one Http object must
    not be shared between threads.
    """

    # API quota costs for different endpoint calls (estimates)
    API_COST = {
        "videos.list": 1,
        "search.list": 100,
    }

    DETAIL_PARTS = "status,statistics,contentDetails,snippet"

    def __init__(self, api_key: str, youtube: Optional[Resource] = None):
        """Initialize the YouTube API client.

        Args:
            api_key: YouTube Data API key.
            youtube: Optional pre-built Resource (used by tests).

        Raises:
            APIConfigurationError: If the API key is missing or client cannot be built.
        """
        if not api_key:
            logger.critical("YouTube API key is missing.", exc_info=False)
            raise APIConfigurationError(f"Missing {config.API_KEY_ENV_VAR}")

        self.key_manager = SecureApiKeyManager()
        if not self.key_manager.validate_key(api_key):
            # Log warning but proceed, validation is heuristic
            logger.warning("API key format validation failed (heuristic check).", key=self.key_manager.obfuscate_key(api_key))

        if youtube is not None:
            self.youtube = youtube
        else:
            try:
                # cache_discovery=False prevents issues with stale discovery documents
                self.youtube = build("youtube", "v3", developerKey=api_key, cache_discovery=False)
            except Exception as e:
                logger.critical(f"Error initializing YouTube API client build: {e}", error=str(e))
                raise APIConfigurationError(f"Could not initialize YouTube API service: {e}") from e

        # Statistics tracking (per client, and clients are per request)
        self.api_calls_count = 0
        self.api_quota_used = 0

    async def _execute_api_call(self, api_request: Any, step: str, cost: int = 1) -> dict:
        """Executes the API call with retry logic and timeout.

        Raises:
            UpstreamError: (or a subclass) when the call ultimately fails.
        """
        response = await RetryableRequest.execute_with_retry(
            lambda: api_request.execute(http=build_http()),
            max_retries=config.API_RETRY_ATTEMPTS,
            base_delay_ms=config.API_RETRY_BASE_DELAY_MS,
            timeout_seconds=config.API_TIMEOUT_SECONDS,
            operation_name=getattr(api_request, "methodId", None) or step,
        )
        self.api_calls_count += 1
        self.api_quota_used += cost
        if not isinstance(response, dict):
            raise UpstreamError(f"Unexpected {step} response type: {type(response).__name__}", status_code=200)
        return response

    def _search_params(self, query: str, published_after: datetime,
                       region: Optional[str], max_results: int) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "part": "snippet",
            "type": "video",
            "order": "date",
            "maxResults": max_results,
            "q": query,
            "publishedAfter": format_rfc3339(published_after),
            "videoEmbeddable": "true",
            "videoSyndicated": "true",
            "videoCaption": "none",
            "safeSearch": "none",
        }
        if region:
            params["regionCode"] = region
        return params

    async def search_videos(self, query: str, published_after: datetime,
                            region: Optional[str] = None,
                            max_results: int = config.BATCH_SIZE) -> UpstreamResult:
        """Runs one search.list call for fresh, embeddable, caption-free videos.

        Args:
            query: Search text.
            published_after: Earliest publish time (aware, UTC).
            region: Optional ISO 3166-1 alpha-2 region hint.
            max_results: Page size (max 50).

        Returns:
            UpstreamResult: raw search items on success.
        """
        params = self._search_params(query, published_after, region, min(max_results, config.BATCH_SIZE))
        log = logger.bind(step=STEP_SEARCH, query=query[:60])
        log.info(
            f"Performing high-cost API search (100 units) for '{query[:60]}' since {params['publishedAfter']}",
            quota_cost=self.API_COST["search.list"],
            region=region
        )
        try:
            with performance_timer(f"search.list '{query[:30]}'"):
                req = self.youtube.search().list(**params)
                resp = await self._execute_api_call(req, STEP_SEARCH, cost=self.API_COST["search.list"])
        except UpstreamError as e:
            log.warning(f"Search failed for '{query[:60]}': {e.message}", status=e.status, error_code=e.error_code)
            return UpstreamResult.failure(STEP_SEARCH, e.message, status=e.status)
        except Exception as e:
            log.error(f"Unexpected error during search for '{query[:60]}': {type(e).__name__}: {e}")
            return UpstreamResult.failure(STEP_SEARCH, f"{type(e).__name__}: {e}")

        items = resp.get("items") or []
        log.info(f"Search returned {len(items)} item(s) for '{query[:60]}'.", item_count=len(items))
        return UpstreamResult.success(STEP_SEARCH, items)

    async def get_video_details(self, video_ids: List[str]) -> UpstreamResult:
        """Fetches status, statistics, contentDetails and snippet for up to 50 ids in one call.

        Args:
            video_ids: Candidate ids (extra ids beyond the batch size are dropped).

        Returns:
            UpstreamResult: raw videos.list items on success.
        """
        if not video_ids:
            return UpstreamResult.success(STEP_DETAILS, [])

        batch_ids = list(video_ids)
        if len(batch_ids) > config.BATCH_SIZE:
            logger.warning(f"Batch size {len(batch_ids)} exceeds max {config.BATCH_SIZE}. Truncating.")
            batch_ids = batch_ids[:config.BATCH_SIZE]

        logger.debug(f"Calling videos.list API for {len(batch_ids)} IDs: {batch_ids[0]}...", step=STEP_DETAILS)
        try:
            with performance_timer("videos.list"):
                req = self.youtube.videos().list(
                    part=self.DETAIL_PARTS,
                    id=",".join(batch_ids),
                    maxResults=len(batch_ids)
                )
                resp = await self._execute_api_call(req, STEP_DETAILS, cost=self.API_COST["videos.list"])
        except UpstreamError as e:
            logger.warning(f"Details lookup failed for {len(batch_ids)} ids: {e.message}", step=STEP_DETAILS, status=e.status)
            return UpstreamResult.failure(STEP_DETAILS, e.message, status=e.status)
        except Exception as e:
            logger.error(f"Unexpected error during details lookup: {type(e).__name__}: {e}", step=STEP_DETAILS)
            return UpstreamResult.failure(STEP_DETAILS, f"{type(e).__name__}: {e}")

        items = resp.get("items") or []
        logger.info(f"Details returned {len(items)}/{len(batch_ids)} item(s).", step=STEP_DETAILS, item_count=len(items))
        return UpstreamResult.success(STEP_DETAILS, items)

    def get_api_stats(self) -> Dict[str, Any]:
        """Returns API usage statistics for this client."""
        return {
            "api_calls_count": self.api_calls_count,
            "api_quota_used_estimated": self.api_quota_used,
        }
