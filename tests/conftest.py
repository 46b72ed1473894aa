"""Shared test fixtures for YouTube Knowledge tests."""
from __future__ import annotations

import threading

import pytest

from youtube_knowledge.clients import Clients
from youtube_knowledge.database.connection import init_database
from youtube_knowledge.database.repository import Repository
from youtube_knowledge.errors import EmbeddingFailed
from youtube_knowledge.ingestion.metadata_fetcher import VideoMetadata
from youtube_knowledge.ingestion.transcript_fetcher import Transcript


class FakeEmbeddings:
    """Embeds by keyword: each known word lights up one axis.

    ``fail_on`` makes embed() raise for any text containing that substring.
    """

    model = "fake-embed"
    KEYWORDS = ["dough", "oven", "starter", "flour", "water"]

    def __init__(self, fail_on: str = None):
        self.fail_on = fail_on
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def embed(self, text: str) -> list[float]:
        with self._lock:
            self.calls.append(text)
        if self.fail_on and self.fail_on in text:
            raise EmbeddingFailed(f"refused to embed {text[:20]!r}")
        lowered = text.lower()
        vector = [float(lowered.count(k)) for k in self.KEYWORDS]
        # keep every vector non-zero so cosine similarity is defined
        vector.append(0.1)
        return vector


class FakeChat:
    model = "fake-chat"

    def __init__(self, reply: str = "The answer is in the video."):
        self.reply = reply
        self.calls: list[list[dict]] = []

    def complete(self, messages: list[dict]) -> str:
        self.calls.append(messages)
        return self.reply


class FakeSpeech:
    model = "fake-whisper"
    language = "en"

    def __init__(self, text: str = "spoken words from the audio"):
        self.text = text
        self.calls: list[str] = []

    def transcribe(self, audio_path: str) -> str:
        self.calls.append(audio_path)
        return self.text


class FakeMetadataFetcher:
    def __init__(self, title: str = "Sourdough Basics", channel_name: str = "Test Channel"):
        self.metadata = VideoMetadata(title=title, channel_name=channel_name)

    def fetch(self, video_id: str) -> VideoMetadata:
        return self.metadata


class FakeTranscriptFetcher:
    def __init__(self, text: str = "", error: Exception = None):
        self.text = text
        self.error = error
        self.calls: list[tuple] = []

    def fetch_transcript(self, video_id: str, allow_speech_to_text=None) -> Transcript:
        self.calls.append((video_id, allow_speech_to_text))
        if self.error:
            raise self.error
        return Transcript(text=self.text, language_code="en", source="captions")


SAMPLE_CHUNKS = [
    "The dough rests overnight while the starter does its work.",
    "Preheat the oven with the pot inside for an hour.",
    "Weigh the flour first, then add the water slowly.",
    "Feed the starter, fold the dough, then shape the dough and let the dough rise.",
]


@pytest.fixture
def tmp_db(tmp_path):
    """Create a temporary SQLite database with full schema + migrations."""
    db_path = str(tmp_path / "test.db")
    conn = init_database(db_path)
    conn.close()
    return db_path


@pytest.fixture
def repo(tmp_db):
    """Create a Repository backed by the temp database."""
    r = Repository(tmp_db)
    yield r
    r.close()


@pytest.fixture
def fake_clients():
    return Clients(speech=FakeSpeech(), embeddings=FakeEmbeddings(), chat=FakeChat())


@pytest.fixture
def seeded_analysis(repo, fake_clients):
    """An analysis with four embedded chunks, returned as (analysis, chunks)."""
    analysis = repo.create_analysis(
        {
            "video_id": "abc123",
            "video_title": "Sourdough Basics",
            "channel_name": "Test Channel",
            "video_url": "https://www.youtube.com/watch?v=abc123",
            "transcript_language": "en",
        },
        " ".join(SAMPLE_CHUNKS),
        owner_id=1,
    )
    chunks = repo.create_chunks(
        analysis.id,
        [
            {"index": i, "text": text, "embedding": fake_clients.embeddings.embed(text)}
            for i, text in enumerate(SAMPLE_CHUNKS)
        ],
    )
    fake_clients.embeddings.calls.clear()
    return analysis, chunks


@pytest.fixture
def flask_app(tmp_db, fake_clients):
    """Create a Flask test app with all routes registered."""
    from youtube_knowledge.web.app import create_app

    config = {
        "db_path": tmp_db,
        "ollama": {
            "url": "http://localhost:11434",
            "model": "llama3.2",
        },
    }
    app = create_app(config, clients=fake_clients)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(flask_app):
    """Flask test client."""
    return flask_app.test_client()


@pytest.fixture
def make_pipeline(repo, fake_clients):
    """Factory for an IngestionPipeline over fake fetchers.

    Returns (pipeline, transcript_fetcher) so tests can inspect calls.
    """
    from youtube_knowledge.ingestion.pipeline import IngestionPipeline

    def _make(transcript="", error=None, embeddings=None, chunk_size=500, chunk_overlap=50):
        fetcher = FakeTranscriptFetcher(text=transcript, error=error)
        pipeline = IngestionPipeline(
            metadata_fetcher=FakeMetadataFetcher(),
            transcript_fetcher=fetcher,
            embeddings=embeddings or fake_clients.embeddings,
            repo=repo,
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            embedding_workers=3,
        )
        return pipeline, fetcher

    return _make


@pytest.fixture
def failing_embeddings():
    """Factory for embeddings that refuse any text containing ``marker``."""
    return lambda marker: FakeEmbeddings(fail_on=marker)
