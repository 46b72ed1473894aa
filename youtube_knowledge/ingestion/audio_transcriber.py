from __future__ import annotations

"""Speech-to-text fallback for videos without captions: download the audio
track with yt-dlp, then send it to the speech-to-text service."""

import logging
import shutil
import subprocess
import tempfile
import time
from contextlib import contextmanager
from pathlib import Path

from ..clients import SpeechToTextClient
from ..errors import (
    TranscriptFetchFailed,
    UpstreamTimeout,
    VideoAgeRestricted,
    VideoPrivateOrUnavailable,
)
from .transcript_fetcher import AGE_PATTERN, Transcript
from .video_id import watch_url

logger = logging.getLogger(__name__)


def classify_download_error(video_id: str, stderr: str) -> Exception:
    """Map yt-dlp's error output onto the pipeline's error kinds."""
    message = stderr.strip().splitlines()[-1] if stderr.strip() else "unknown error"
    lowered = stderr.lower()
    if "private" in lowered or "unavailable" in lowered:
        return VideoPrivateOrUnavailable(f"{video_id}: {message}")
    if AGE_PATTERN.search(stderr):
        return VideoAgeRestricted(f"{video_id}: {message}")
    return TranscriptFetchFailed(f"Audio download failed for {video_id}: {message}")


@contextmanager
def temporary_audio_path(video_id: str):
    """Yield an mp3 path inside a private temp directory.

    yt-dlp leaves ``.part`` and intermediate files beside its output when it is
    interrupted, so the whole directory is removed on every exit path. Cleanup
    errors are logged and swallowed so they never mask the caller's result or
    exception.
    """
    workdir = Path(tempfile.mkdtemp(prefix=f"youtube-{video_id}-"))
    try:
        yield workdir / "audio.mp3"
    finally:
        try:
            shutil.rmtree(workdir)
            logger.debug(f"Cleaned up audio directory: {workdir}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to clean up audio directory {workdir}: {e}")


class AudioTranscriber:
    """Downloads a video's audio to a temp file and transcribes it.

    Slow (download + transcode + upload), so only used when explicitly enabled.
    """

    def __init__(
        self,
        speech_client: SpeechToTextClient,
        ytdlp_binary: str = "yt-dlp",
        download_timeout: float = 600,
    ):
        self.speech_client = speech_client
        self.ytdlp_binary = ytdlp_binary
        self.download_timeout = download_timeout

    def transcribe_video(self, video_id: str) -> Transcript:
        with temporary_audio_path(video_id) as audio_path:
            self.download_audio(video_id, audio_path)
            logger.info(f"Transcribing audio for {video_id}")
            text = self.speech_client.transcribe(str(audio_path))

        return Transcript(
            text=text,
            language_code=self.speech_client.language,
            source="speech_to_text",
        )

    def download_audio(self, video_id: str, audio_path: Path):
        """Run yt-dlp to extract the audio track as mp3 at ``audio_path``."""
        # yt-dlp picks the extension itself; the template makes it land on audio_path
        output_template = str(audio_path.with_suffix("")) + ".%(ext)s"
        cmd = [
            self.ytdlp_binary,
            "-x",
            "--audio-format", "mp3",
            "--audio-quality", "5",
            "--no-progress",
            "--no-playlist",
            "-o", output_template,
            watch_url(video_id),
        ]

        logger.info(f"Downloading audio for {video_id}")
        started = time.monotonic()
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.download_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise UpstreamTimeout(
                f"Audio download for {video_id} exceeded {self.download_timeout}s"
            ) from e
        except FileNotFoundError as e:
            raise TranscriptFetchFailed(
                f"Audio extraction tool not found: {self.ytdlp_binary}"
            ) from e

        if result.returncode != 0:
            raise classify_download_error(video_id, result.stderr)
        if not audio_path.exists():
            raise TranscriptFetchFailed(f"yt-dlp produced no audio file for {video_id}")

        logger.info(
            f"Audio downloaded to {audio_path} in {time.monotonic() - started:.1f}s "
            f"({audio_path.stat().st_size // 1024} KiB)"
        )
