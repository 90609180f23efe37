#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
feed_cli.py
Runs the Rawfeed pipeline once from the terminal and prints the video ids,
or a diagnostics table with --debug. Useful for checking a key and the
filter thresholds without deploying the endpoint.

Exit codes: 0 success, 1 missing/invalid credential, 2 upstream step failed.
"""

import argparse
import asyncio
import logging
import random
import sys
from typing import List, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from common import normalize_region
from config import config
from exceptions import APIConfigurationError
from logging_config import setup_logging
from models import FeedOutcome
from services.engine import FeedEngine
from services.youtube_api import YouTubeAPIClient
from utils import SecureApiKeyManager

EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_UPSTREAM_ERROR = 2

console = Console()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch one Rawfeed batch of video ids.")
    parser.add_argument("-q", "--query", default=None, help="Search text (random seed phrase if omitted).")
    parser.add_argument("--region", default=None, help="Two-letter region hint, e.g. GB.")
    parser.add_argument("--seed", type=int, default=None, help="Seed the random source for repeatable runs.")
    parser.add_argument("--debug", action="store_true", help="Print pipeline diagnostics instead of ids.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logs.")
    return parser.parse_args(argv)


def render_diagnostics(outcome: FeedOutcome) -> Table:
    """Build a rich table summarising one pipeline run."""
    table = Table(title=f"Feed diagnostics: '{outcome.query}'", show_header=True)
    table.add_column("Step")
    table.add_column("Value", justify="right")

    table.add_row("lookback (h)", str(outcome.lookback_hours))
    for index, result in enumerate(outcome.search_results, start=1):
        label = "ok" if result.ok else f"failed: {result.error}"
        table.add_row(f"search #{index}", f"{result.status} {label} ({len(result.items)} items)")
    table.add_row("candidates", str(outcome.candidate_count))
    if outcome.details_result is not None:
        table.add_row("details status", str(outcome.details_result.status))
    table.add_row("details", str(outcome.detail_count))
    table.add_row("strict", str(outcome.strict_count))
    table.add_row("relaxed", "not run" if outcome.relaxed_count is None else str(outcome.relaxed_count))
    table.add_row("output", str(len(outcome.ids)))
    table.add_row("failed step", outcome.failed_step or "-")
    return table


async def run_once(args: argparse.Namespace) -> int:
    key_manager = SecureApiKeyManager()
    api_key = key_manager.get_key()
    if not api_key:
        console.print(f"[bold red]Missing {key_manager.primary_env_var}[/bold red]")
        return EXIT_CONFIG_ERROR

    try:
        client = YouTubeAPIClient(api_key)
    except APIConfigurationError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        return EXIT_CONFIG_ERROR

    engine = FeedEngine(client, rng=random.Random(args.seed))
    region = normalize_region(args.region)
    outcome = await engine.build_feed(args.query, region=region)

    if args.debug:
        console.print(render_diagnostics(outcome))
        stats = client.get_api_stats()
        console.print(f"API calls: {stats['api_calls_count']}, estimated quota used: {stats['api_quota_used_estimated']} unit(s)")
    else:
        for video_id in outcome.ids:
            print(video_id)

    return EXIT_UPSTREAM_ERROR if outcome.failed_step else EXIT_OK


def run(argv: Optional[List[str]] = None) -> int:
    """Console-script entry point."""
    args = parse_args(argv)
    load_dotenv()
    config.load_from_env()
    setup_logging(
        log_level_console=logging.DEBUG if args.verbose else logging.WARNING,
        structured=False,
    )
    return asyncio.run(run_once(args))


if __name__ == "__main__":
    sys.exit(run())
