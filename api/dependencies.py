#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
FastAPI dependency injection functions for Rawfeed.

Nothing here is a long-lived singleton: the credential is read from the
environment on every request and each request gets its own API client and
engine. Tests replace these through `app.dependency_overrides`.
"""

import random
from typing import Callable

# Import service classes
from services.engine import FeedEngine
from services.youtube_api import YouTubeAPIClient
from utils import SecureApiKeyManager
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)

EngineFactory = Callable[[str, random.Random], FeedEngine]

key_manager = SecureApiKeyManager()


# --- Dependency Injection Functions ---

def get_api_key() -> str:
    """Dependency function returning the API key, or '' when it is not configured."""
    api_key = key_manager.get_key()
    if not api_key:
        logger.critical(f"Dependency Error: {key_manager.primary_env_var} is not defined.", exc_info=False)
    return api_key


def get_random_source() -> random.Random:
    """Dependency function providing the random source for seed choice and shuffling."""
    return random.Random()


def build_feed_engine(api_key: str, rng: random.Random) -> FeedEngine:
    """Create a request-scoped FeedEngine.

    Raises:
        APIConfigurationError: If the YouTube client cannot be built.
    """
    return FeedEngine(YouTubeAPIClient(api_key), rng=rng)


def get_engine_factory() -> EngineFactory:
    """Dependency function returning the callable that builds the engine."""
    return build_feed_engine
