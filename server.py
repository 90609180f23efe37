#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Uvicorn server entry point for the Rawfeed application.

Handles environment loading (.env), final logging configuration based on environment,
and starts the Uvicorn server process. Serverless hosts import `main:app`
directly and skip this file.
"""

import logging
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# Import config components and logging setup
from config import config
from common import configure_logging_from_env, is_true


def load_environment() -> None:
    """Load a .env file from the working directory if there is one."""
    env_path = Path(".") / ".env"
    if env_path.is_file():
        load_dotenv(dotenv_path=env_path, override=True)
        print(f"Loaded environment variables from: {env_path.resolve()}")
    else:
        print(".env file not found, using system environment variables.")


def main() -> None:
    """Console-script entry point."""
    # 1. Load Environment Variables from .env file (if it exists)
    load_environment()

    # 2. Re-initialize Configuration AFTER loading .env
    config.load_from_env()

    # 3. Setup Logging based on final configuration
    configure_logging_from_env()

    # 4. Get Uvicorn Server Parameters from Environment/Defaults
    run_host = os.environ.get("HOST", "127.0.0.1")
    try:
        run_port = int(os.environ.get("PORT", "8000"))
    except ValueError:
        logging.warning(f"Invalid PORT environment variable '{os.environ.get('PORT')}', using default 8000.")
        run_port = 8000

    # Reload should only be enabled for development
    debug_mode = is_true(os.environ.get("DEBUG", "false"))
    uvicorn_log_level = os.environ.get("UVICORN_LOG_LEVEL", "debug" if debug_mode else "info").lower()

    logging.info(f"Starting Uvicorn server on http://{run_host}:{run_port}")
    logging.info(f"Debug mode: {debug_mode}, Uvicorn Log Level: {uvicorn_log_level}")

    uvicorn.run(
        # Use the string format "module:app_instance" for Uvicorn
        "main:app",
        host=run_host,
        port=run_port,
        reload=debug_mode,
        log_level=uvicorn_log_level,
    )


if __name__ == "__main__":
    main()
