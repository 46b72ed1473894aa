from __future__ import annotations

"""Handles for the external model services. Built once at process start by
build_clients() and handed to the components that need them."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import requests

from .config import get_ollama_config, get_speech_config
from .errors import EmbeddingFailed, UpstreamServiceError
from .utils.upstream import upstream_call

logger = logging.getLogger(__name__)

DEFAULT_OLLAMA_URL = "http://localhost:11434"


class EmbeddingClient:
    """Turns text into a fixed-length vector via Ollama's /api/embed endpoint."""

    def __init__(
        self,
        model: str = "nomic-embed-text",
        ollama_url: str = DEFAULT_OLLAMA_URL,
        timeout: float = 30,
    ):
        self.model = model
        self.ollama_url = ollama_url.rstrip("/")
        self.timeout = timeout

    @upstream_call("Embedding service", error_cls=EmbeddingFailed)
    def embed(self, text: str) -> list[float]:
        resp = requests.post(
            f"{self.ollama_url}/api/embed",
            json={"model": self.model, "input": text},
            timeout=self.timeout,
        )
        resp.raise_for_status()

        embeddings = resp.json().get("embeddings") or []
        if not embeddings or not embeddings[0]:
            raise EmbeddingFailed(f"Embedding model {self.model} returned no vector")
        return [float(x) for x in embeddings[0]]


class ChatClient:
    """Requests a single non-streaming completion from Ollama's /api/chat."""

    def __init__(
        self,
        model: str = "llama3.2",
        ollama_url: str = DEFAULT_OLLAMA_URL,
        temperature: float = 0.2,
        timeout: float = 120,
    ):
        self.model = model
        self.ollama_url = ollama_url.rstrip("/")
        self.temperature = temperature
        self.timeout = timeout

    @upstream_call("Chat model")
    def complete(self, messages: list[dict]) -> str:
        resp = requests.post(
            f"{self.ollama_url}/api/chat",
            json={
                "model": self.model,
                "messages": messages,
                "stream": False,
                "options": {"temperature": self.temperature},
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()

        content = resp.json().get("message", {}).get("content", "").strip()
        if not content:
            raise UpstreamServiceError(f"Chat model {self.model} returned an empty answer")
        return content


class SpeechToTextClient:
    """Uploads an audio file to an OpenAI-compatible transcription endpoint."""

    def __init__(
        self,
        url: str = "https://api.openai.com",
        api_key: Optional[str] = None,
        model: str = "whisper-1",
        language: Optional[str] = "en",
        timeout: float = 300,
    ):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.language = language
        self.timeout = timeout

    @upstream_call("Speech-to-text service")
    def transcribe(self, audio_path: str) -> str:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        data = {"model": self.model}
        if self.language:
            data["language"] = self.language

        path = Path(audio_path)
        with open(path, "rb") as audio:
            resp = requests.post(
                f"{self.url}/v1/audio/transcriptions",
                headers=headers,
                data=data,
                files={"file": (path.name, audio, "audio/mpeg")},
                timeout=self.timeout,
            )
        resp.raise_for_status()

        text = resp.json().get("text", "").strip()
        logger.info(f"Speech-to-text produced {len(text)} characters")
        return text


@dataclass
class Clients:
    speech: SpeechToTextClient
    embeddings: EmbeddingClient
    chat: ChatClient


def build_clients(config: dict) -> Clients:
    """Construct all external service clients from config."""
    ollama_cfg = get_ollama_config(config)
    speech_cfg = get_speech_config(config)

    return Clients(
        speech=SpeechToTextClient(
            url=speech_cfg["url"],
            api_key=speech_cfg["api_key"],
            model=speech_cfg["model"],
            language=speech_cfg["language"],
            timeout=speech_cfg["timeout"],
        ),
        embeddings=EmbeddingClient(
            model=ollama_cfg["embedding_model"],
            ollama_url=ollama_cfg["ollama_url"],
            timeout=ollama_cfg["embedding_timeout"],
        ),
        chat=ChatClient(
            model=ollama_cfg["model"],
            ollama_url=ollama_cfg["ollama_url"],
            temperature=ollama_cfg["temperature"],
            timeout=ollama_cfg["chat_timeout"],
        ),
    )
