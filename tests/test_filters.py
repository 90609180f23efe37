"""
Tests for the strict and relaxed filter passes.
"""
import unittest
import sys
import os

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from models import VideoMetadata
from services.filters import (RELAXED_PASS, STRICT_PASS, filter_with_fallback,
                              looks_branded)


def make_item(video_id, views=120, duration="PT2M", category="22", title="walking to the shop",
              channel="jo", tags=None, caption="false", embeddable=True, upload_status="processed"):
    """Build a videos.list item shaped like the real API response."""
    return {
        "id": video_id,
        "status": {"embeddable": embeddable, "uploadStatus": upload_status},
        "statistics": {"viewCount": str(views)},
        "contentDetails": {"duration": duration, "caption": caption},
        "snippet": {
            "title": title,
            "channelTitle": channel,
            "categoryId": category,
            "tags": tags or [],
        },
    }


def make_video(video_id, **kwargs):
    return VideoMetadata.from_api_response(make_item(video_id, **kwargs))


class TestVideoMetadata(unittest.TestCase):
    """Test cases for VideoMetadata.from_api_response."""

    def test_parses_fields(self):
        video = make_video("abc", views=42, duration="PT1M5S", caption="true", tags=["a", "b"])
        self.assertEqual(video.id, "abc")
        self.assertTrue(video.embeddable)
        self.assertEqual(video.upload_status, "processed")
        self.assertTrue(video.has_caption)
        self.assertEqual(video.duration_seconds, 65)
        self.assertEqual(video.view_count, 42)
        self.assertEqual(video.category_id, "22")
        self.assertEqual(video.tags, ("a", "b"))

    def test_missing_fields_do_not_raise(self):
        video = VideoMetadata.from_api_response({"id": "bare"})
        self.assertFalse(video.embeddable)
        self.assertEqual(video.view_count, 0)
        self.assertEqual(video.duration_seconds, 0)
        self.assertFalse(video.has_caption)
        self.assertEqual(video.tags, ())

    def test_hidden_view_count_counts_as_zero(self):
        item = make_item("x")
        del item["statistics"]["viewCount"]
        self.assertEqual(VideoMetadata.from_api_response(item).view_count, 0)


class TestStrictPass(unittest.TestCase):
    """Each strict predicate rejects on its own."""

    def test_accepts_ordinary_video(self):
        self.assertTrue(STRICT_PASS.accepts(make_video("ok")))

    def test_rejects_not_embeddable(self):
        self.assertFalse(STRICT_PASS.accepts(make_video("x", embeddable=False)))

    def test_rejects_unprocessed(self):
        self.assertFalse(STRICT_PASS.accepts(make_video("x", upload_status="uploaded")))

    def test_rejects_captions(self):
        self.assertFalse(STRICT_PASS.accepts(make_video("x", caption="true")))

    def test_duration_bounds_inclusive(self):
        self.assertTrue(STRICT_PASS.accepts(make_video("a", duration="PT20S")))
        self.assertTrue(STRICT_PASS.accepts(make_video("b", duration="PT20M")))
        self.assertFalse(STRICT_PASS.accepts(make_video("c", duration="PT19S")))
        self.assertFalse(STRICT_PASS.accepts(make_video("d", duration="PT20M1S")))

    def test_view_ceiling_exclusive(self):
        self.assertTrue(STRICT_PASS.accepts(make_video("a", views=4999)))
        self.assertFalse(STRICT_PASS.accepts(make_video("b", views=5000)))

    def test_category_allow_list(self):
        for category in ("2", "15", "19", "22", "26", "28"):
            self.assertTrue(STRICT_PASS.accepts(make_video("a", category=category)), category)
        self.assertFalse(STRICT_PASS.accepts(make_video("b", category="27")))
        self.assertFalse(STRICT_PASS.accepts(make_video("c", category="10")))

    def test_brand_heuristic(self):
        self.assertFalse(STRICT_PASS.accepts(make_video("a", title="OFFICIAL Music Video")))
        self.assertFalse(STRICT_PASS.accepts(make_video("b", channel="Some Band - Topic")))
        self.assertFalse(STRICT_PASS.accepts(make_video("c", tags=["vlog", "sponsored"])))


class TestRelaxedPass(unittest.TestCase):
    """The relaxed pass widens bounds and switches to a category deny-list."""

    def test_wider_duration_and_views(self):
        video = make_video("a", duration="PT16S", views=14000)
        self.assertFalse(STRICT_PASS.accepts(video))
        self.assertTrue(RELAXED_PASS.accepts(video))
        self.assertFalse(RELAXED_PASS.accepts(make_video("b", duration="PT14S")))
        self.assertFalse(RELAXED_PASS.accepts(make_video("c", duration="PT30M1S")))
        self.assertFalse(RELAXED_PASS.accepts(make_video("d", views=15000)))

    def test_deny_list(self):
        self.assertTrue(RELAXED_PASS.accepts(make_video("edu", category="27")))
        for category in ("1", "10", "17", "20", "23", "24", "25", "29"):
            self.assertFalse(RELAXED_PASS.accepts(make_video("x", category=category)), category)

    def test_keeps_hard_checks(self):
        self.assertFalse(RELAXED_PASS.accepts(make_video("a", caption="true")))
        self.assertFalse(RELAXED_PASS.accepts(make_video("b", embeddable=False)))
        self.assertFalse(RELAXED_PASS.accepts(make_video("c", title="Episode 4 full")))


class TestBrandHeuristic(unittest.TestCase):

    def test_matches(self):
        for title in ("New trailer!", "EP 12 - the return", "Presented by Acme", "haul #ad", "Lyrics"):
            self.assertTrue(looks_branded(make_video("x", title=title)), title)

    def test_does_not_match_ordinary_titles(self):
        for title in ("rainy walk downtown", "my cat knocking stuff over", "labelling jars", "dashcam 2am"):
            self.assertFalse(looks_branded(make_video("x", title=title)), title)


class TestFilterWithFallback(unittest.TestCase):
    """The relaxed pass runs iff strict keeps fewer than the minimum."""

    def _strict_and_relaxed_only(self, strict_count, relaxed_only_count):
        videos = [make_video(f"s{i}") for i in range(strict_count)]
        videos += [make_video(f"r{i}", category="27") for i in range(relaxed_only_count)]
        videos += [make_video("live-ish", duration="P0D"), make_video("popular", views=10 ** 6)]
        return videos

    def test_relaxed_runs_below_minimum(self):
        videos = self._strict_and_relaxed_only(7, 3)
        ids, strict_count, relaxed_count = filter_with_fallback(videos, 8)
        self.assertEqual(strict_count, 7)
        self.assertEqual(relaxed_count, 10)
        self.assertEqual(set(ids), {f"s{i}" for i in range(7)} | {f"r{i}" for i in range(3)})

    def test_relaxed_skipped_at_or_above_minimum(self):
        videos = self._strict_and_relaxed_only(10, 3)
        ids, strict_count, relaxed_count = filter_with_fallback(videos, 8)
        self.assertEqual(strict_count, 10)
        self.assertIsNone(relaxed_count)
        self.assertEqual(ids, [f"s{i}" for i in range(10)])

    def test_exactly_minimum_does_not_relax(self):
        _, _, relaxed_count = filter_with_fallback(self._strict_and_relaxed_only(8, 2), 8)
        self.assertIsNone(relaxed_count)

    def test_every_returned_id_satisfies_its_pass(self):
        videos = self._strict_and_relaxed_only(3, 4)
        by_id = {v.id: v for v in videos}
        ids, _, relaxed_count = filter_with_fallback(videos, 8)
        self.assertIsNotNone(relaxed_count)
        for video_id in ids:
            self.assertTrue(RELAXED_PASS.accepts(by_id[video_id]))

    def test_idempotent(self):
        videos = self._strict_and_relaxed_only(5, 5)
        first = filter_with_fallback(videos, 8)
        second = filter_with_fallback(videos, 8)
        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
