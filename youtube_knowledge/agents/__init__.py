from __future__ import annotations

from .video_qa import VideoQAAgent

__all__ = [
    "VideoQAAgent",
]
