#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Configuration module for Rawfeed.

Defines configuration parameters and loads values from environment variables.
The API key itself is not cached here: it is read at invocation time through
SecureApiKeyManager so that a credential added to the environment is picked up
without a restart.
"""

import os
import logging
from typing import Dict, Any

# Initialize a basic logger for config loading issues
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Default configuration values
_CONFIG_DEFAULTS: Dict[str, Any] = {
    # API Configuration
    "API_KEY_ENV_VAR": "YT_API_KEY",
    "API_KEY_FALLBACK_ENV_VAR": "YOUTUBE_API_KEY",

    # YouTube API Settings
    "BATCH_SIZE": 50,  # Max allowed by YouTube API for search pages and video details

    # Feed pipeline
    "LOOKBACK_HOURS": (48, 168),  # Recency windows, tried in order
    "MIN_CANDIDATES": 10,  # Below this, the next (wider) window is searched
    "MAX_CANDIDATES": 50,  # Cap on the de-duplicated candidate set
    "MIN_STRICT_RESULTS": 8,  # Below this, the relaxed pass replaces the strict one
    "MAX_OUTPUT": 50,  # Ids returned to the widget
    "EXTRA_SEED_COUNT": 2,  # Additional random seeds searched alongside the chosen one
    "DEBUG_SAMPLE_SIZE": 5,

    # Timeouts & retries
    "API_RETRY_ATTEMPTS": 0,  # search.list costs 100 units, so no retries by default
    "API_RETRY_BASE_DELAY_MS": 500,
    "API_TIMEOUT_SECONDS": 8.0,  # Timeout for a single API request

    # Web Server
    "DEFAULT_ENCODING": "utf-8",
    "CACHE_S_MAXAGE_SECONDS": 120,  # Edge cache revalidates every 2 minutes
    "CACHE_STALE_WHILE_REVALIDATE_SECONDS": 600,  # Stale responses allowed for 10 minutes

    # CORS
    "ALLOWED_ORIGINS": ["*"],
    "ALLOWED_METHODS": ["GET", "OPTIONS"],
    "ALLOWED_HEADERS": ["Content-Type"],
}


class Config:
    """Configuration class that loads values from environment variables."""

    def __init__(self, load_from_env=True):
        """Initialize configuration with default values and optionally from environment.

        Args:
            load_from_env: Whether to load values from environment variables
        """
        # Set all default values as attributes
        for key, value in _CONFIG_DEFAULTS.items():
            setattr(self, key, value)

        # Load from environment if requested
        if load_from_env:
            self.load_from_env()

    def load_from_env(self):
        """Load configuration values from environment variables."""
        # Load CORS origins
        env_origins = os.environ.get("ALLOWED_ORIGINS", "")
        if env_origins:
            origins = [origin.strip() for origin in env_origins.split(",")]
            origins = [o for o in origins if o]
            if origins:
                self.ALLOWED_ORIGINS = origins
                logger.info(f"CORS origins set from environment: {self.ALLOWED_ORIGINS}")

        # Load lookback windows ("48,168")
        env_lookback = os.environ.get("LOOKBACK_HOURS", "")
        if env_lookback:
            try:
                windows = tuple(int(part) for part in env_lookback.split(",") if part.strip())
                if windows and all(w > 0 for w in windows):
                    self.LOOKBACK_HOURS = windows
                else:
                    logger.warning(f"Ignoring empty or non-positive LOOKBACK_HOURS: {env_lookback}")
            except ValueError:
                logger.warning(f"Invalid LOOKBACK_HOURS value: {env_lookback}")

        # Load numeric values with type conversion
        self._load_int_from_env("MIN_CANDIDATES")
        self._load_int_from_env("MAX_CANDIDATES")
        self._load_int_from_env("MIN_STRICT_RESULTS")
        self._load_int_from_env("MAX_OUTPUT")
        self._load_int_from_env("EXTRA_SEED_COUNT")
        self._load_int_from_env("API_RETRY_ATTEMPTS")
        self._load_int_from_env("API_RETRY_BASE_DELAY_MS")
        self._load_float_from_env("API_TIMEOUT_SECONDS")
        self._load_int_from_env("CACHE_S_MAXAGE_SECONDS")
        self._load_int_from_env("CACHE_STALE_WHILE_REVALIDATE_SECONDS")

        # Warn if API key is missing (it is still re-read on every request)
        if not (os.environ.get(self.API_KEY_ENV_VAR) or os.environ.get(self.API_KEY_FALLBACK_ENV_VAR)):
            logger.warning(f"API key not found in env var {self.API_KEY_ENV_VAR}.")

    def _load_int_from_env(self, key):
        """Load an integer value from environment variable.

        Args:
            key: The configuration key to load

        Returns:
            bool: True if the value was loaded, False otherwise
        """
        env_value = os.environ.get(key)
        if env_value is not None:
            try:
                setattr(self, key, int(env_value))
                return True
            except ValueError:
                logger.warning(f"Invalid integer value for {key}: {env_value}")
        return False

    def _load_float_from_env(self, key):
        """Load a float value from environment variable.

        Args:
            key: The configuration key to load

        Returns:
            bool: True if the value was loaded, False otherwise
        """
        env_value = os.environ.get(key)
        if env_value is not None:
            try:
                setattr(self, key, float(env_value))
                return True
            except ValueError:
                logger.warning(f"Invalid float value for {key}: {env_value}")
        return False

    @property
    def cache_control_header(self) -> str:
        """Cache-Control value for successful feed responses."""
        return (
            f"public, s-maxage={self.CACHE_S_MAXAGE_SECONDS}, "
            f"stale-while-revalidate={self.CACHE_STALE_WHILE_REVALIDATE_SECONDS}"
        )


# Create a single instance of Config to be imported by other modules
config = Config(load_from_env=True)
