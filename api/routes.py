#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
API Routes for the Rawfeed application using FastAPI.

Defines the feed endpoint (with its CORS preflight) and a health check.
"""

import random
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import JSONResponse

# Import models, exceptions, dependencies, services, config from the package
from common import normalize_region
from config import config
from exceptions import APIConfigurationError
from models import ErrorResponse, FeedDiagnostics, FeedOutcome
from api.dependencies import (EngineFactory, get_api_key, get_engine_factory,
                              get_random_source, key_manager)
from utils import get_process_memory_mb
from logging_config import StructuredLogger

# Import version directly from root __init__.py
from __init__ import __version__ as app_version


logger = StructuredLogger(__name__)

# Create an API router
router = APIRouter()

FEED_PATH = "/api/feed"
MAX_QUERY_LENGTH = 200

# Define common error responses for OpenAPI documentation
ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    500: {"model": ErrorResponse, "description": "Missing API credential, or upstream failure in debug mode"},
}


def build_diagnostics(outcome: FeedOutcome) -> FeedDiagnostics:
    """Summarise a pipeline run for debug mode."""
    failed = outcome.failed_result
    return FeedDiagnostics(
        step=outcome.failed_step or "done",
        query=outcome.query,
        search_status=[r.status for r in outcome.search_results],
        details_status=outcome.details_result.status if outcome.details_result else None,
        lookback_hours=outcome.lookback_hours,
        candidates=outcome.candidate_count,
        details=outcome.detail_count,
        strict=outcome.strict_count,
        relaxed=outcome.relaxed_count,
        output=len(outcome.ids),
        sample=outcome.ids[:config.DEBUG_SAMPLE_SIZE],
        error=failed.error if failed else None,
    )


def config_error_response(message: str, debug_mode: bool) -> JSONResponse:
    """500 response for a missing or unusable credential."""
    if debug_mode:
        body = FeedDiagnostics(step="config", error=message).model_dump()
    else:
        body = ErrorResponse(error=message, error_code=APIConfigurationError().error_code).model_dump()
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


# --- API Endpoints ---

@router.options(FEED_PATH, include_in_schema=False)
async def feed_preflight():
    """CORS preflight: empty 204 (headers are added by the middleware)."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    FEED_PATH,
    responses=ERROR_RESPONSES,
    summary="Random fresh low-view videos",
    description="Searches YouTube for recent ordinary footage, filters out branded and popular videos, "
                "and returns a shuffled JSON array of video ids. An empty array means 'try again shortly'."
)
async def get_feed(
    q: Optional[str] = Query(None, description="Search text; a random seed phrase is used when omitted."),
    debug: Optional[str] = Query(None, description="'1' returns a diagnostic object instead of the id array."),
    region: Optional[str] = Query(None, description="Two-letter region hint forwarded to the search."),
    api_key: str = Depends(get_api_key),
    rng: random.Random = Depends(get_random_source),
    engine_factory: EngineFactory = Depends(get_engine_factory),
):
    """API endpoint building one feed.

    Upstream failures degrade to `[]` (200) unless `debug=1`, in which case the
    diagnostics object is returned with status 500.
    """
    debug_mode = debug == "1"

    if not api_key:
        return config_error_response(f"Missing {key_manager.primary_env_var}", debug_mode)

    try:
        engine = engine_factory(api_key, rng)
    except APIConfigurationError as e:
        logger.critical(f"API configuration error: {e.message}", exc_info=False)
        return config_error_response(e.message, debug_mode)

    query = q[:MAX_QUERY_LENGTH] if q else q
    outcome = await engine.build_feed(query, region=normalize_region(region))

    if debug_mode:
        diagnostics = build_diagnostics(outcome)
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR if outcome.failed_step else status.HTTP_200_OK
        return JSONResponse(status_code=status_code, content=diagnostics.model_dump())

    if outcome.failed_step:
        logger.warning(f"Feed degraded to empty result after failed '{outcome.failed_step}' step.", step=outcome.failed_step)
        return JSONResponse(status_code=status.HTTP_200_OK, content=[])

    # An empty feed means "try again shortly", so only non-empty feeds go to the edge cache
    headers = {"Cache-Control": config.cache_control_header} if outcome.ids else None
    return JSONResponse(status_code=status.HTTP_200_OK, content=outcome.ids, headers=headers)


@router.get(
    "/health",
    summary="Health Check",
    description="Reports service status, version, whether the API credential is configured, and process memory.",
)
async def health_check():
    """Endpoint to check service health; never exposes the key itself."""
    logger.debug("Health check endpoint requested.")
    api_key = key_manager.get_key()
    health_data = {
        "status": "healthy" if api_key else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service_version": app_version,
        "components": {
            "api_key": "configured" if api_key else "missing",
            "api_key_format_valid": key_manager.validate_key(api_key) if api_key else False,
        },
        "memory_mb": get_process_memory_mb(),
    }
    return JSONResponse(status_code=status.HTTP_200_OK, content=health_data)
