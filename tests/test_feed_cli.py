"""
Tests for the one-shot feed CLI.
"""
import unittest
import sys
import os
from unittest.mock import AsyncMock, MagicMock, patch

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from cli import feed_cli
from models import FeedOutcome, UpstreamResult


def outcome(ids, failed_step=None):
    return FeedOutcome(
        query="q",
        ids=ids,
        search_results=[UpstreamResult.success("search", [])],
        details_result=UpstreamResult.success("details", []),
        candidate_count=len(ids),
        detail_count=len(ids),
        strict_count=len(ids),
        relaxed_count=None,
        lookback_hours=48,
        failed_step=failed_step,
    )


class TestRunOnce(unittest.IsolatedAsyncioTestCase):

    async def test_missing_key_exit_code(self):
        with patch.dict(os.environ, {"YT_API_KEY": "", "YOUTUBE_API_KEY": ""}):
            code = await feed_cli.run_once(feed_cli.parse_args([]))
        self.assertEqual(code, feed_cli.EXIT_CONFIG_ERROR)

    async def test_success_prints_ids(self):
        engine = MagicMock()
        engine.build_feed = AsyncMock(return_value=outcome(["a", "b"]))
        with patch.dict(os.environ, {"YT_API_KEY": "AIza" + "c" * 35}), \
                patch.object(feed_cli, "YouTubeAPIClient"), \
                patch.object(feed_cli, "FeedEngine", return_value=engine), \
                patch("builtins.print") as printed:
            code = await feed_cli.run_once(feed_cli.parse_args(["-q", "q", "--region", "gb"]))
        self.assertEqual(code, feed_cli.EXIT_OK)
        self.assertEqual([c.args[0] for c in printed.call_args_list], ["a", "b"])
        self.assertEqual(engine.build_feed.await_args.kwargs["region"], "GB")

    async def test_failed_step_exit_code(self):
        engine = MagicMock()
        engine.build_feed = AsyncMock(return_value=outcome([], failed_step="search"))
        with patch.dict(os.environ, {"YT_API_KEY": "AIza" + "c" * 35}), \
                patch.object(feed_cli, "YouTubeAPIClient"), \
                patch.object(feed_cli, "FeedEngine", return_value=engine):
            code = await feed_cli.run_once(feed_cli.parse_args([]))
        self.assertEqual(code, feed_cli.EXIT_UPSTREAM_ERROR)

    async def test_malformed_region_is_dropped(self):
        engine = MagicMock()
        engine.build_feed = AsyncMock(return_value=outcome(["a"]))
        with patch.dict(os.environ, {"YT_API_KEY": "AIza" + "c" * 35}), \
                patch.object(feed_cli, "YouTubeAPIClient"), \
                patch.object(feed_cli, "FeedEngine", return_value=engine), \
                patch("builtins.print"):
            await feed_cli.run_once(feed_cli.parse_args(["--region", "USA"]))
        self.assertIsNone(engine.build_feed.await_args.kwargs["region"])

    async def test_debug_reports_api_usage(self):
        engine = MagicMock()
        engine.build_feed = AsyncMock(return_value=outcome(["a"]))
        client = MagicMock()
        client.get_api_stats.return_value = {"api_calls_count": 2, "api_quota_used_estimated": 101}
        with patch.dict(os.environ, {"YT_API_KEY": "AIza" + "c" * 35}), \
                patch.object(feed_cli, "YouTubeAPIClient", return_value=client), \
                patch.object(feed_cli, "FeedEngine", return_value=engine), \
                patch.object(feed_cli, "console") as console:
            code = await feed_cli.run_once(feed_cli.parse_args(["--debug"]))
        self.assertEqual(code, feed_cli.EXIT_OK)
        printed = [c.args[0] for c in console.print.call_args_list]
        self.assertIn("API calls: 2, estimated quota used: 101 unit(s)", printed)


class TestRenderDiagnostics(unittest.TestCase):

    def test_table_rows(self):
        table = feed_cli.render_diagnostics(outcome(["a"]))
        self.assertEqual(len(table.columns), 2)
        self.assertEqual(table.row_count, 9)


if __name__ == '__main__':
    unittest.main()
