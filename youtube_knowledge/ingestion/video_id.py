import re
from typing import Optional

# Tried in order; the first match wins.
VIDEO_ID_PATTERNS = [
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#/]+)"),
    re.compile(r"youtube\.com/embed/([^&\n?#/]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#/]+)"),
]


def extract_video_id(url: str) -> Optional[str]:
    """Return the video id from a watch, short-link, embed, or /v/ URL.

    Returns None when no known URL shape matches.
    """
    if not url:
        return None

    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"
