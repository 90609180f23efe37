#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main FastAPI application setup for Rawfeed.

Initializes the FastAPI application, registers middleware and includes the
API routes. The module-level `app` is the ASGI entry point for both uvicorn
(server.py) and serverless hosts.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

# Import version directly from __init__.py
from __init__ import __version__

# Import components from the package
from common import ensure_logging_configured

# No-op under server.py, which has already configured logging
ensure_logging_configured()

from api import routes
from api.dependencies import key_manager
from middleware import FeedHeadersMiddleware
from logging_config import StructuredLogger

# Initialize logger for this module
logger = StructuredLogger(__name__)

# --- Lifespan Management ---

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Nothing is initialised here: the credential and API client are per
    request. Startup only reports whether the key is present.
    """
    logger.info("Starting Rawfeed FastAPI application lifespan...")

    api_key = key_manager.get_key()
    if not api_key:
        logger.critical(
            f"{key_manager.primary_env_var} is not defined. /api/feed will answer 500 until it is set.",
            exc_info=False
        )
    elif not key_manager.validate_key(api_key):
        logger.warning("API key format validation failed (heuristic check). Application might not function correctly.")
    else:
        logger.info(f"API key configured: {key_manager.obfuscate_key(api_key)}")

    # Yield control to the running application
    yield

    # --- Shutdown ---
    logger.info("Rawfeed FastAPI application lifespan finished.")


# --- FastAPI Application Instantiation ---

app = FastAPI(
    lifespan=lifespan,
    title="Rawfeed API",
    description="Serves shuffled ids of fresh, low-view, unbranded YouTube footage to an embeddable widget.",
    version=__version__
)

# --- Middleware Registration ---
app.add_middleware(FeedHeadersMiddleware)
logger.debug("Middleware registered.")

# --- API Router Inclusion ---
app.include_router(routes.router)
logger.info("API routes included.")
