#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
General utilities and helper classes for Rawfeed.

Includes Retry Logic, Performance Timer, API Key Manager and a small
process memory probe used by the health endpoint.
"""

import asyncio
import functools
import http.client
import os
import random
import re
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional, Tuple

import httplib2
import psutil
from googleapiclient.errors import HttpError

# Import config and exceptions from the current package
from config import config
from exceptions import (
    QuotaExceededError, RateLimitedError, TimeoutExceededError, UpstreamError
)
from logging_config import StructuredLogger


logger = StructuredLogger(__name__)


def _http_error_status(error: HttpError) -> Optional[int]:
    """Extract the integer HTTP status from a googleapiclient HttpError."""
    status_code = getattr(getattr(error, "resp", None), "status", None)
    try:
        return int(status_code) if status_code is not None else None
    except (TypeError, ValueError):
        return None


def _http_error_reason(error: HttpError) -> str:
    """Decode the error body of an HttpError for quota detection and logging."""
    content_bytes = getattr(error, "content", b"") or b""
    if isinstance(content_bytes, bytes):
        return content_bytes.decode(config.DEFAULT_ENCODING, errors="replace")
    return str(content_bytes)


# --- Retry Logic ---

class RetryableRequest:
    """Handles requests with retry logic, exponential backoff, and jitter.

    Provides static methods to execute blocking Google API calls from async
    code with a per-attempt timeout. Every failure leaves this class as an
    UpstreamError subclass carrying the upstream HTTP status.
    """

    @staticmethod
    def classify_error(error: Exception, op_name: str) -> UpstreamError:
        """Map a raw client/transport exception onto the UpstreamError hierarchy."""
        if isinstance(error, UpstreamError):
            return error
        if isinstance(error, HttpError):
            status_code = _http_error_status(error)
            if status_code == 403:
                reason = _http_error_reason(error)
                if "quotaExceeded" in reason or "dailyLimitExceeded" in reason:
                    return QuotaExceededError(f"YouTube API quota exceeded during '{op_name}'")
            if status_code == 429:
                return RateLimitedError(f"YouTube API rate limited '{op_name}'")
            return UpstreamError(f"YouTube API error {status_code} during '{op_name}': {error}", status_code=status_code)
        if isinstance(error, asyncio.TimeoutError):
            return TimeoutExceededError(f"Operation '{op_name}' timed out")
        return UpstreamError(f"Transport error during '{op_name}': {type(error).__name__}: {error}")

    @staticmethod
    def is_retryable(error: UpstreamError) -> bool:
        """Quota and client errors are final; 5xx, 429, timeouts and transport errors are not."""
        if isinstance(error, QuotaExceededError):
            return False
        if isinstance(error, (RateLimitedError, TimeoutExceededError)):
            return True
        return error.status is None or error.status >= 500

    @staticmethod
    async def execute_with_retry(
        func: Callable[..., Any],
        *args: Any,
        max_retries: int = config.API_RETRY_ATTEMPTS,
        base_delay_ms: int = config.API_RETRY_BASE_DELAY_MS,
        timeout_seconds: float = config.API_TIMEOUT_SECONDS,
        jitter_factor: float = 0.5,
        operation_name: Optional[str] = None,
        **kwargs: Any
    ) -> Any:
        """Execute a blocking function in the default executor with retry logic.

        Args:
            func: The synchronous function to execute.
            *args: Positional arguments for the function.
            max_retries: Maximum number of retry attempts (0 = single attempt).
            base_delay_ms: Base delay between retries in milliseconds.
            timeout_seconds: Timeout for each attempt in seconds.
            jitter_factor: Factor for randomizing delay (0.0 to 1.0). 0 = no jitter.
            operation_name: Optional name for logging purposes. Defaults to func name.
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the function if successful.

        Raises:
            UpstreamError: (or a subclass) once retries are exhausted or on a
                           non-retryable failure.
        """
        op_name = operation_name or getattr(func, '__name__', 'unknown_operation')
        loop = asyncio.get_running_loop()
        partial_func = functools.partial(func, *args, **kwargs)

        for attempt in range(max_retries + 1):
            try:
                logger.debug(f"Attempt {attempt + 1}/{max_retries + 1} for operation '{op_name}'")
                return await asyncio.wait_for(
                    loop.run_in_executor(None, partial_func),
                    timeout=timeout_seconds
                )
            except (HttpError, httplib2.HttpLib2Error, http.client.HTTPException, OSError,
                    asyncio.TimeoutError, UpstreamError) as e:
                error = RetryableRequest.classify_error(e, op_name)

            if not RetryableRequest.is_retryable(error) or attempt >= max_retries:
                logger.warning(
                    f"Operation '{op_name}' failed after {attempt + 1} attempt(s): {error.message}",
                    operation=op_name,
                    status=error.status,
                    error_code=error.error_code
                )
                raise error

            # Exponential backoff with jitter: base * 2**attempt * (1 +/- jitter)
            jitter = (random.random() * 2 - 1) * jitter_factor
            delay_seconds = (base_delay_ms / 1000.0) * (2 ** attempt) * (1 + jitter)
            actual_delay = max(0.1, min(delay_seconds, 10.0))
            logger.info(
                f"Retrying '{op_name}' in {actual_delay:.2f} seconds (attempt {attempt + 2}/{max_retries + 1})",
                operation=op_name,
                delay_seconds=actual_delay,
                status=error.status
            )
            await asyncio.sleep(actual_delay)

        # Loop always returns or raises
        raise RuntimeError(f"Retry logic exited unexpectedly for operation '{op_name}'.")


# --- Performance Timer ---

@contextmanager
def performance_timer(operation_name: str, threshold_ms: float = 500.0):
    """Context manager for timing operations with threshold-based logging.

    Logs at INFO level if duration exceeds threshold_ms, WARNING if it
    significantly exceeds it, otherwise DEBUG.

    Args:
        operation_name: A descriptive name for the operation being timed.
        threshold_ms: Threshold in milliseconds.

    Yields:
        dict: Filled with 'duration_ms' when the block exits.
    """
    timing: Dict[str, float] = {}
    start_time = time.monotonic()
    try:
        yield timing
    finally:
        duration_ms = (time.monotonic() - start_time) * 1000
        timing["duration_ms"] = round(duration_ms, 2)

        if duration_ms > threshold_ms * 10:
            logger.warning(f"SLOW OPERATION: '{operation_name}' took {duration_ms:.2f}ms", operation=operation_name, duration_ms=timing["duration_ms"])
        elif duration_ms > threshold_ms:
            logger.info(f"Performance watch: '{operation_name}' took {duration_ms:.2f}ms", operation=operation_name, duration_ms=timing["duration_ms"])
        else:
            logger.debug(f"Performance: '{operation_name}' completed in {duration_ms:.2f}ms", operation=operation_name, duration_ms=timing["duration_ms"])


# --- API Key Manager ---

class SecureApiKeyManager:
    """Reads the YouTube API key from the environment at call time.

    The key is never cached on the instance and only ever logged obfuscated.
    """

    KEY_PATTERN = re.compile(r"^AIza[0-9A-Za-z_-]{35}$")

    def __init__(self, env_vars: Optional[Tuple[str, ...]] = None):
        self.env_vars = env_vars or (config.API_KEY_ENV_VAR, config.API_KEY_FALLBACK_ENV_VAR)

    @property
    def primary_env_var(self) -> str:
        return self.env_vars[0]

    def get_key(self) -> str:
        """Return the first non-empty key among the configured variables ('' if none)."""
        for name in self.env_vars:
            value = (os.environ.get(name) or "").strip()
            if value:
                return value
        return ""

    def validate_key(self, key_to_validate: Optional[str] = None) -> bool:
        """Heuristic format check (Google API keys are 39 chars starting with 'AIza')."""
        key = key_to_validate if key_to_validate is not None else self.get_key()
        return bool(key and self.KEY_PATTERN.match(key))

    def obfuscate_key(self, key_to_obfuscate: Optional[str] = None) -> str:
        """Return a log-safe form of the key."""
        key = key_to_obfuscate if key_to_obfuscate is not None else self.get_key()
        if not key:
            return "<missing>"
        if len(key) <= 8:
            return "*" * len(key)
        return f"{key[:4]}...{key[-4:]}"


# --- Memory probe ---

def get_process_memory_mb() -> Optional[float]:
    """Resident memory of this process in MB, or None if psutil cannot read it."""
    try:
        return round(psutil.Process(os.getpid()).memory_info().rss / (1024 * 1024), 2)
    except (psutil.Error, OSError) as e:
        logger.warning(f"Could not read process memory: {e}")
        return None
