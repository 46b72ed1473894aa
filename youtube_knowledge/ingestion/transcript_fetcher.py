from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import requests
from requests import Session
from requests.adapters import HTTPAdapter

from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import (
    AgeRestricted,
    CouldNotRetrieveTranscript,
    InvalidVideoId,
    NoTranscriptFound,
    RequestBlocked,
    TranscriptsDisabled,
    VideoUnavailable,
    VideoUnplayable,
)

from ..errors import (
    KnowledgeBaseError,
    NoTranscriptAvailable,
    TranscriptFetchFailed,
    UpstreamTimeout,
    VideoAgeRestricted,
    VideoPrivateOrUnavailable,
)

if TYPE_CHECKING:
    from .audio_transcriber import AudioTranscriber

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")
AGE_PATTERN = re.compile(r"\bage\b|age-restrict|confirm your age", re.IGNORECASE)


@dataclass
class Transcript:
    text: str
    language_code: Optional[str] = None
    source: str = "captions"

    @property
    def word_count(self) -> int:
        return len(self.text.split())


class TimeoutAdapter(HTTPAdapter):
    """Applies a default timeout to every request sent through the session."""

    def __init__(self, timeout: float, *args, **kwargs):
        self.timeout = timeout
        super().__init__(*args, **kwargs)

    def send(self, request, **kwargs):
        if kwargs.get("timeout") is None:
            kwargs["timeout"] = self.timeout
        return super().send(request, **kwargs)


def join_snippets(snippets: list[dict]) -> str:
    """Flatten caption snippets into one line of plain text."""
    texts = []
    for snippet in snippets:
        text = WHITESPACE_PATTERN.sub(" ", snippet.get("text") or "").strip()
        if text:
            texts.append(text)
    return " ".join(texts)


def select_track(tracks: list, preferred_language: str = "en"):
    """Pick the preferred-language track (any regional variant), else the first."""
    primary = preferred_language.split("-")[0].lower()
    for track in tracks:
        code = (track.language_code or "").lower()
        if code == preferred_language.lower() or code.split("-")[0] == primary:
            return track
    return tracks[0]


def translate_caption_error(video_id: str, error: Exception) -> KnowledgeBaseError:
    """Map youtube-transcript-api and transport failures onto the error taxonomy."""
    name = type(error).__name__
    if isinstance(error, requests.Timeout):
        return UpstreamTimeout(f"Caption request for {video_id} timed out")
    if isinstance(error, (TranscriptsDisabled, NoTranscriptFound)):
        return NoTranscriptAvailable(f"No captions available for {video_id} ({name})")
    if isinstance(error, AgeRestricted):
        return VideoAgeRestricted(f"{video_id}: age-restricted")
    if isinstance(error, VideoUnplayable) and AGE_PATTERN.search(str(error)):
        return VideoAgeRestricted(f"{video_id}: {name}")
    if isinstance(error, (VideoUnavailable, VideoUnplayable, InvalidVideoId)):
        return VideoPrivateOrUnavailable(f"{video_id}: {name}")
    if isinstance(error, RequestBlocked):
        return TranscriptFetchFailed(f"YouTube is rate-limiting requests for {video_id}")
    return TranscriptFetchFailed(f"Caption fetch for {video_id} failed ({name}): {error}")


class TranscriptFetcher:
    """Obtains a video's transcript from its caption tracks via youtube-transcript-api.

    When a video has no caption track and ``allow_speech_to_text`` is set,
    the optional AudioTranscriber downloads the audio and transcribes it.
    """

    def __init__(
        self,
        preferred_language: str = "en",
        audio_transcriber: Optional[AudioTranscriber] = None,
        allow_speech_to_text: bool = False,
        timeout: float = 15,
    ):
        self.preferred_language = preferred_language
        self.audio_transcriber = audio_transcriber
        self.allow_speech_to_text = allow_speech_to_text
        self.timeout = timeout

    def _make_api(self) -> YouTubeTranscriptApi:
        """Create an API instance whose session enforces the request timeout."""
        session = Session()
        session.headers.update({
            "Accept-Language": "en-US,en;q=0.9",
        })
        adapter = TimeoutAdapter(self.timeout)
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        return YouTubeTranscriptApi(http_client=session)

    def fetch_transcript(
        self, video_id: str, allow_speech_to_text: Optional[bool] = None
    ) -> Transcript:
        """Return the transcript or raise a KnowledgeBaseError subclass."""
        if allow_speech_to_text is None:
            allow_speech_to_text = self.allow_speech_to_text

        try:
            return self._fetch_captions(video_id)
        except NoTranscriptAvailable as e:
            if not allow_speech_to_text or self.audio_transcriber is None:
                raise
            logger.info(f"No captions for {video_id} ({e}); falling back to speech-to-text")

        try:
            transcript = self.audio_transcriber.transcribe_video(video_id)
        except (VideoPrivateOrUnavailable, VideoAgeRestricted, UpstreamTimeout):
            raise
        except KnowledgeBaseError as e:
            raise NoTranscriptAvailable(
                f"Speech-to-text fallback failed for {video_id}: {e}"
            ) from e

        if not transcript.text.strip():
            raise NoTranscriptAvailable(f"Speech-to-text returned no text for {video_id}")
        return transcript

    def _fetch_captions(self, video_id: str) -> Transcript:
        api = self._make_api()
        try:
            tracks = list(api.list(video_id))
            if not tracks:
                raise NoTranscriptAvailable(f"No captions available for {video_id}")

            track = select_track(tracks, self.preferred_language)
            logger.info(
                f"Using {track.language_code} caption track for {video_id} "
                f"({len(tracks)} available, generated={track.is_generated})"
            )
            snippets = track.fetch().to_raw_data()
        except KnowledgeBaseError:
            raise
        except (CouldNotRetrieveTranscript, requests.RequestException) as e:
            raise translate_caption_error(video_id, e) from e
        except (KeyError, ValueError) as e:
            # malformed track listing or caption body
            raise TranscriptFetchFailed(
                f"Unexpected caption data for {video_id}: {type(e).__name__}: {e}"
            ) from e

        text = join_snippets(snippets)
        if not text:
            raise NoTranscriptAvailable(f"No transcript text found for {video_id}")

        logger.info(f"Fetched {len(text)} characters of captions for {video_id}")
        return Transcript(text=text, language_code=track.language_code, source="captions")
