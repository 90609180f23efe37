#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Pydantic models and Dataclasses for Rawfeed API responses
and internal data structures.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from text_processing import iso_duration_to_seconds
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


def _to_int(value: Any) -> int:
    """Parse a count the API sends as a string; missing or malformed counts as 0."""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class VideoMetadata:
    """Data class for the metadata the feed filters look at.

    Built from one item of a videos.list response; never persisted.
    """

    id: str
    embeddable: bool = False
    upload_status: str = ""
    has_caption: bool = False
    duration_iso: str = ""
    view_count: int = 0
    category_id: str = ""
    title: str = ""
    channel_title: str = ""
    tags: tuple = field(default_factory=tuple)

    @classmethod
    def from_api_response(cls, item: dict) -> "VideoMetadata":
        """Create a VideoMetadata instance from a YouTube API video resource item.

        Args:
            item: YouTube API response item for a video

        Returns:
            VideoMetadata: New instance; absent fields take permissive-looking
                           defaults that the filters then reject.
        """
        status = item.get("status") or {}
        statistics = item.get("statistics") or {}
        content_details = item.get("contentDetails") or {}
        snippet = item.get("snippet") or {}

        # contentDetails.caption is the string "true" or "false"
        caption = content_details.get("caption")
        has_caption = caption is True or str(caption).lower() == "true"

        return cls(
            id=item.get("id") or "",
            embeddable=status.get("embeddable") is True,
            upload_status=status.get("uploadStatus") or "",
            has_caption=has_caption,
            duration_iso=content_details.get("duration") or "",
            view_count=_to_int(statistics.get("viewCount")),
            category_id=str(snippet.get("categoryId") or ""),
            title=snippet.get("title") or "",
            channel_title=snippet.get("channelTitle") or "",
            tags=tuple(snippet.get("tags") or ()),
        )

    @property
    def duration_seconds(self) -> int:
        """Duration in whole seconds (0 when unknown)."""
        return iso_duration_to_seconds(self.duration_iso)


@dataclass
class UpstreamResult:
    """Outcome of a single YouTube API call.

    Failures are values rather than exceptions so callers branch on `ok`.
    """

    step: str
    ok: bool
    status: Optional[int] = None
    items: List[dict] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def success(cls, step: str, items: List[dict], status: int = 200) -> "UpstreamResult":
        return cls(step=step, ok=True, status=status, items=list(items))

    @classmethod
    def failure(cls, step: str, error: str, status: Optional[int] = None) -> "UpstreamResult":
        return cls(step=step, ok=False, status=status, error=error)


@dataclass
class FeedOutcome:
    """Everything one pipeline run produced, for the response and for diagnostics."""

    query: str
    ids: List[str] = field(default_factory=list)
    search_results: List[UpstreamResult] = field(default_factory=list)
    details_result: Optional[UpstreamResult] = None
    candidate_count: int = 0
    detail_count: int = 0
    strict_count: int = 0
    relaxed_count: Optional[int] = None  # None when the relaxed pass did not run
    lookback_hours: Optional[int] = None
    failed_step: Optional[str] = None

    @property
    def failed_result(self) -> Optional[UpstreamResult]:
        """The upstream result responsible for `failed_step`, if any."""
        if self.failed_step == "details":
            return self.details_result
        if self.failed_step == "search":
            failures = [r for r in self.search_results if not r.ok]
            return failures[-1] if failures else None
        return None


class FeedDiagnostics(BaseModel):
    """Debug-mode body of /api/feed.

    Replaces the plain id array when `debug=1`.
    """

    step: str = Field(
        ...,
        description="Last pipeline step reached ('config', 'search', 'details' or 'done')."
    )
    query: Optional[str] = Field(
        None,
        description="Search query used for the primary seed."
    )
    search_status: List[Optional[int]] = Field(
        default_factory=list,
        description="HTTP status of each search call (null for transport errors)."
    )
    details_status: Optional[int] = Field(
        None,
        description="HTTP status of the details call, if it was made."
    )
    lookback_hours: Optional[int] = Field(
        None,
        description="Recency window that produced the candidates."
    )
    candidates: int = Field(0, description="De-duplicated candidate ids.")
    details: int = Field(0, description="Items returned by the details call.")
    strict: int = Field(0, description="Items that passed the strict rules.")
    relaxed: Optional[int] = Field(
        None,
        description="Items that passed the relaxed rules (null if not run)."
    )
    output: int = Field(0, description="Ids in the final response.")
    sample: List[str] = Field(default_factory=list, description="First few output ids.")
    error: Optional[str] = Field(None, description="Raw upstream or configuration error.")


class ErrorResponse(BaseModel):
    """Model for error responses.

    Defines the structure of error responses returned by the API.
    """

    error: str = Field(
        ...,
        description="Detailed error message."
    )
    error_code: Optional[str] = Field(
        None,
        description="Optional internal error code."
    )
