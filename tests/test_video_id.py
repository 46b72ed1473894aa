"""Tests for video id extraction."""
from __future__ import annotations

import pytest

from youtube_knowledge.ingestion.video_id import extract_video_id, watch_url


class TestExtractVideoId:
    @pytest.mark.parametrize("url", [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtube.com/watch?v=dQw4w9WgXcQ&t=42s",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ?si=abc",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://www.youtube.com/v/dQw4w9WgXcQ",
        "youtube.com/watch?v=dQw4w9WgXcQ#comments",
    ])
    def test_known_shapes(self, url):
        assert extract_video_id(url) == "dQw4w9WgXcQ"

    @pytest.mark.parametrize("url", [
        "",
        None,
        "https://example.com/watch?v=abc",
        "https://vimeo.com/12345",
        "not a url",
    ])
    def test_unrecognized_returns_none(self, url):
        assert extract_video_id(url) is None

    def test_watch_url(self):
        assert watch_url("abc") == "https://www.youtube.com/watch?v=abc"
