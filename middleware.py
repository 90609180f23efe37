#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Custom middleware for Rawfeed.

Adds the permissive CORS headers the embedding widget needs, a default
Cache-Control for responses that did not set one, and per-request logging.
"""

import logging
import time
from typing import List, Optional

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import JSONResponse

from config import config
from exceptions import handle_exception
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


class FeedHeadersMiddleware(BaseHTTPMiddleware):
    """Combined middleware for CORS/caching response headers and request logging.

    Handles:
    1. Access-Control-* headers on every response (including errors)
    2. Cache-Control: no-store unless the route chose a caching policy
    3. One structured log line per request
    """

    SLOW_RESPONSE_MS = 5000

    def __init__(self, app: FastAPI, allowed_origins: Optional[List[str]] = None,
                 allowed_methods: Optional[List[str]] = None,
                 allowed_headers: Optional[List[str]] = None):
        """Initialize the middleware.

        Args:
            app: The FastAPI application instance
            allowed_origins: Origins for Access-Control-Allow-Origin ('*' allows any)
            allowed_methods: Methods advertised to preflight requests
            allowed_headers: Request headers advertised to preflight requests
        """
        super().__init__(app)
        self.allowed_origins = allowed_origins or config.ALLOWED_ORIGINS
        self.allowed_methods = allowed_methods or config.ALLOWED_METHODS
        self.allowed_headers = allowed_headers or config.ALLOWED_HEADERS
        logger.info(f"FeedHeadersMiddleware initialized. Allowed origins: {self.allowed_origins}")

    def _allow_origin(self, request: Request) -> Optional[str]:
        """Value for Access-Control-Allow-Origin, or None if the origin is not allowed."""
        if "*" in self.allowed_origins:
            return "*"
        origin = request.headers.get("origin")
        if origin and origin in self.allowed_origins:
            return origin
        return None

    def _apply_headers(self, request: Request, response: Response) -> None:
        allow_origin = self._allow_origin(request)
        if allow_origin:
            response.headers["Access-Control-Allow-Origin"] = allow_origin
            if allow_origin != "*":
                response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = ", ".join(self.allowed_methods)
        response.headers["Access-Control-Allow-Headers"] = ", ".join(self.allowed_headers)
        response.headers["X-Content-Type-Options"] = "nosniff"
        if "cache-control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process the request, decorate the response and log the outcome."""
        start_time = time.monotonic()
        path = request.url.path
        method = request.method
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Exception during request processing",
                path=path, method=method, client_ip=client_ip, error=str(exc)
            )
            http_exc = handle_exception(exc)
            headers = dict(http_exc.headers or {})
            response = JSONResponse(
                status_code=http_exc.status_code,
                content={"error": http_exc.detail, "error_code": headers.pop("X-Error-Code", "INTERNAL_SERVER_ERROR")},
                headers=headers,
            )

        self._apply_headers(request, response)

        process_time_ms = (time.monotonic() - start_time) * 1000
        status_code = response.status_code
        log_msg = {
            "path": path,
            "method": method,
            "status_code": status_code,
            "duration_ms": round(process_time_ms, 2),
            "client_ip": client_ip
        }

        log_level = logging.INFO
        if status_code >= 500:
            log_level = logging.ERROR
        elif status_code >= 400:
            log_level = logging.WARNING

        if log_level == logging.ERROR:
            logger.error("Request completed", exc_info=False, **log_msg)
        elif log_level == logging.WARNING:
            logger.warning("Request completed", **log_msg)
        else:
            logger.info("Request completed", **log_msg)

        if process_time_ms > self.SLOW_RESPONSE_MS:
            logger.warning(f"Slow response: {method} {path}", **log_msg)

        return response
