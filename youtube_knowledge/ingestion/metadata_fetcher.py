from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass

import requests

from .video_id import watch_url

logger = logging.getLogger(__name__)

HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

DEFAULT_TITLE = "Video"
DEFAULT_CHANNEL = "Channel"

TITLE_PATTERNS = [
    re.compile(r'<meta\s+name="title"\s+content="([^"]+)"'),
    re.compile(r'<meta\s+property="og:title"\s+content="([^"]+)"'),
    re.compile(r"<title>([^<]+)</title>"),
]

CHANNEL_PATTERNS = [
    re.compile(r'<link\s+itemprop="name"\s+content="([^"]+)"'),
    re.compile(r'"ownerChannelName":"([^"]+)"'),
    re.compile(r'"author":"([^"]+)"'),
]


@dataclass
class VideoMetadata:
    title: str = DEFAULT_TITLE
    channel_name: str = DEFAULT_CHANNEL


def _first_match(patterns: list[re.Pattern], markup: str):
    for pattern in patterns:
        match = pattern.search(markup)
        if match and match.group(1).strip():
            return html.unescape(match.group(1)).strip()
    return None


def parse_metadata(markup: str) -> VideoMetadata:
    """Pull title and channel out of watch-page markup, falling back to
    placeholders for whatever is missing."""
    title = _first_match(TITLE_PATTERNS, markup)
    if title and title.endswith(" - YouTube"):
        title = title[: -len(" - YouTube")].strip()

    channel = _first_match(CHANNEL_PATTERNS, markup)
    return VideoMetadata(
        title=title or DEFAULT_TITLE,
        channel_name=channel or DEFAULT_CHANNEL,
    )


class MetadataFetcher:
    """Fetches a video's display title and channel name. Never raises:
    metadata is cosmetic, so any failure yields the placeholders."""

    def __init__(self, timeout: float = 15):
        self.timeout = timeout

    def fetch(self, video_id: str) -> VideoMetadata:
        try:
            resp = requests.get(watch_url(video_id), headers=HEADERS, timeout=self.timeout)
            resp.raise_for_status()
            metadata = parse_metadata(resp.text)
        except Exception as e:
            logger.warning(f"Could not fetch metadata for {video_id}: {e}")
            return VideoMetadata()

        logger.info(f"Metadata for {video_id}: '{metadata.title}' by {metadata.channel_name}")
        return metadata
