"""
Tests for retry handling and the API key manager.
"""
import unittest
import sys
import os
import asyncio
import http.client
from unittest.mock import MagicMock, patch

import httplib2
from googleapiclient.errors import HttpError

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from exceptions import (QuotaExceededError, RateLimitedError, TimeoutExceededError,
                        UpstreamError)
from utils import RetryableRequest, SecureApiKeyManager, get_process_memory_mb


def http_error(status, content=b'{"error": {"message": "failure"}}'):
    return HttpError(resp=httplib2.Response({"status": status}), content=content)


class TestClassifyError(unittest.TestCase):
    """Raw client errors map onto the UpstreamError hierarchy."""

    def test_quota(self):
        error = RetryableRequest.classify_error(http_error(403, b'{"error": {"errors": [{"reason": "quotaExceeded"}]}}'), "op")
        self.assertIsInstance(error, QuotaExceededError)
        self.assertEqual(error.status, 403)
        self.assertFalse(RetryableRequest.is_retryable(error))

    def test_forbidden_without_quota_reason(self):
        error = RetryableRequest.classify_error(http_error(403), "op")
        self.assertNotIsInstance(error, QuotaExceededError)
        self.assertEqual(error.status, 403)
        self.assertFalse(RetryableRequest.is_retryable(error))

    def test_rate_limited(self):
        error = RetryableRequest.classify_error(http_error(429), "op")
        self.assertIsInstance(error, RateLimitedError)
        self.assertTrue(RetryableRequest.is_retryable(error))

    def test_server_error_retryable(self):
        error = RetryableRequest.classify_error(http_error(500), "op")
        self.assertEqual(error.status, 500)
        self.assertTrue(RetryableRequest.is_retryable(error))

    def test_timeout(self):
        error = RetryableRequest.classify_error(asyncio.TimeoutError(), "op")
        self.assertIsInstance(error, TimeoutExceededError)
        self.assertIsNone(error.status)

    def test_transport_error(self):
        error = RetryableRequest.classify_error(OSError("unreachable"), "op")
        self.assertIsInstance(error, UpstreamError)
        self.assertIsNone(error.status)
        self.assertTrue(RetryableRequest.is_retryable(error))

    def test_http_client_exception_is_transport_error(self):
        error = RetryableRequest.classify_error(http.client.IncompleteRead(b""), "op")
        self.assertIsInstance(error, UpstreamError)
        self.assertIsNone(error.status)
        self.assertIn("IncompleteRead", error.message)


class TestExecuteWithRetry(unittest.IsolatedAsyncioTestCase):

    async def test_success_first_attempt(self):
        func = MagicMock(return_value={"items": []})
        result = await RetryableRequest.execute_with_retry(func, max_retries=2, operation_name="op")
        self.assertEqual(result, {"items": []})
        func.assert_called_once()

    async def test_retries_server_errors_then_succeeds(self):
        func = MagicMock(side_effect=[http_error(503), {"ok": True}])
        with patch("utils.asyncio.sleep") as sleep:
            sleep.return_value = None
            result = await RetryableRequest.execute_with_retry(func, max_retries=2, base_delay_ms=1, operation_name="op")
        self.assertEqual(result, {"ok": True})
        self.assertEqual(func.call_count, 2)

    async def test_client_error_not_retried(self):
        func = MagicMock(side_effect=http_error(400))
        with self.assertRaises(UpstreamError) as ctx:
            await RetryableRequest.execute_with_retry(func, max_retries=3, operation_name="op")
        self.assertEqual(ctx.exception.status, 400)
        func.assert_called_once()

    async def test_gives_up_after_max_retries(self):
        func = MagicMock(side_effect=http_error(500))
        with patch("utils.asyncio.sleep") as sleep:
            sleep.return_value = None
            with self.assertRaises(UpstreamError):
                await RetryableRequest.execute_with_retry(func, max_retries=1, base_delay_ms=1, operation_name="op")
        self.assertEqual(func.call_count, 2)

    async def test_http_client_exception_becomes_upstream_error(self):
        func = MagicMock(side_effect=http.client.BadStatusLine(""))
        with self.assertRaises(UpstreamError) as ctx:
            await RetryableRequest.execute_with_retry(func, max_retries=0, operation_name="op")
        self.assertIsNone(ctx.exception.status)
        self.assertIn("BadStatusLine", ctx.exception.message)


class TestSecureApiKeyManager(unittest.TestCase):

    def test_reads_primary_then_fallback(self):
        manager = SecureApiKeyManager(("RAWFEED_TEST_KEY", "RAWFEED_TEST_KEY_FALLBACK"))
        with patch.dict(os.environ, {"RAWFEED_TEST_KEY": "", "RAWFEED_TEST_KEY_FALLBACK": "fallback"}):
            self.assertEqual(manager.get_key(), "fallback")
        with patch.dict(os.environ, {"RAWFEED_TEST_KEY": "primary", "RAWFEED_TEST_KEY_FALLBACK": "fallback"}):
            self.assertEqual(manager.get_key(), "primary")

    def test_read_at_call_time(self):
        manager = SecureApiKeyManager(("RAWFEED_TEST_KEY",))
        with patch.dict(os.environ, {"RAWFEED_TEST_KEY": ""}):
            self.assertEqual(manager.get_key(), "")
            os.environ["RAWFEED_TEST_KEY"] = "later"
            self.assertEqual(manager.get_key(), "later")

    def test_validate_and_obfuscate(self):
        manager = SecureApiKeyManager(("RAWFEED_TEST_KEY",))
        key = "AIza" + "a" * 31 + "wxyz"
        self.assertTrue(manager.validate_key(key))
        self.assertFalse(manager.validate_key("short"))
        self.assertEqual(manager.obfuscate_key(key), "AIza...wxyz")
        self.assertEqual(manager.obfuscate_key(""), "<missing>")


class TestMemoryProbe(unittest.TestCase):

    def test_process_memory(self):
        memory = get_process_memory_mb()
        self.assertIsNotNone(memory)
        self.assertGreater(memory, 0)


if __name__ == '__main__':
    unittest.main()
