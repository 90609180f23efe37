#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Custom exception classes and error handling utilities for Rawfeed.

Provides a centralized error handling system with custom exceptions,
error mapping, and helper functions for consistent error responses.
Upstream failures are raised inside the API client and converted there into
failed UpstreamResult values; only configuration errors reach the routes.
"""

from typing import Optional
from fastapi import HTTPException, status


# --- Base Exception Classes ---

class AppBaseError(Exception):
    """Base class for all application-specific exceptions.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        http_status_code: HTTP status code to use in API responses
        retry_after: Optional seconds to wait before retrying (for rate limits)
    """

    def __init__(self, message: str, error_code: Optional[str] = None,
                http_status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
                retry_after: Optional[int] = None):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code
            http_status_code: HTTP status code to use in API responses
            retry_after: Optional seconds to wait before retrying
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.http_status_code = http_status_code
        self.retry_after = retry_after
        super().__init__(message)

    def to_http_exception(self) -> HTTPException:
        """Convert this exception to a FastAPI HTTPException.

        Returns:
            HTTPException: FastAPI exception with appropriate status and headers
        """
        headers = {"X-Error-Code": self.error_code}
        if self.retry_after:
            headers["Retry-After"] = str(self.retry_after)

        return HTTPException(
            status_code=self.http_status_code,
            detail=self.message,
            headers=headers
        )


class TransientError(AppBaseError):
    """Base class for retryable errors that might be temporary."""
    pass


class CriticalError(AppBaseError):
    """Base class for non-retryable errors that indicate a serious problem."""
    pass


# --- Configuration ---

class APIConfigurationError(CriticalError):
    """Raised when the API credential is missing or the client cannot be built."""

    def __init__(self, message: str = "API configuration error"):
        super().__init__(
            message=message,
            error_code="API_CONFIG_ERROR",
            http_status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )


# --- Upstream (YouTube API) Exceptions ---

class UpstreamError(TransientError):
    """Raised when a YouTube API call fails or answers with a non-success status.

    Attributes:
        status: HTTP status returned by the upstream API, None for transport errors
    """

    def __init__(self, message: str = "YouTube API request failed", status_code: Optional[int] = None,
                 error_code: str = "UPSTREAM_ERROR", retry_after: Optional[int] = None,
                 http_status_code: int = status.HTTP_502_BAD_GATEWAY):
        self.status = status_code
        super().__init__(
            message=message,
            error_code=error_code,
            http_status_code=http_status_code,
            retry_after=retry_after
        )


class QuotaExceededError(UpstreamError):
    """Raised when the YouTube API quota has been exhausted."""

    def __init__(self, message: str = "YouTube API quota exceeded"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            error_code="QUOTA_EXCEEDED",
            retry_after=3600  # Suggest retry after 1 hour
        )


class RateLimitedError(UpstreamError):
    """Raised when the YouTube API rate limits requests."""

    def __init__(self, message: str = "API rate limit reached", retry_after: int = 30):
        super().__init__(
            message=message,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error_code="RATE_LIMITED",
            retry_after=retry_after
        )


class TimeoutExceededError(UpstreamError):
    """Raised when an upstream call times out."""

    def __init__(self, message: str = "Operation timed out"):
        super().__init__(
            message=message,
            status_code=None,
            error_code="TIMEOUT",
            retry_after=10,
            http_status_code=status.HTTP_504_GATEWAY_TIMEOUT
        )


class InvalidInputError(AppBaseError):
    """Raised when the user input is invalid."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(
            message=message,
            error_code="INVALID_INPUT",
            http_status_code=status.HTTP_400_BAD_REQUEST
        )


# --- Error Handling Utilities ---

def handle_exception(exception: Exception) -> HTTPException:
    """Convert any exception to an appropriate HTTPException.

    Args:
        exception: The exception to handle

    Returns:
        HTTPException: FastAPI exception with appropriate status and headers
    """
    if isinstance(exception, AppBaseError):
        # Our custom exceptions already know how to convert themselves
        return exception.to_http_exception()

    elif isinstance(exception, ValueError):
        # Treat ValueError as InvalidInputError
        return InvalidInputError(str(exception)).to_http_exception()

    elif isinstance(exception, HTTPException):
        # Already a FastAPI HTTPException, just return it
        return exception

    else:
        # Unknown exception, treat as internal server error
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Internal server error: {type(exception).__name__}",
            headers={"X-Error-Code": "INTERNAL_SERVER_ERROR"}
        )
