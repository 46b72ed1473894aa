import os
import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


def load_config() -> dict:
    """Load configuration from .env and config.yaml. Env vars take precedence."""
    load_dotenv(PROJECT_ROOT / ".env")

    config_path = PROJECT_ROOT / "config.yaml"
    if config_path.exists():
        with open(config_path) as f:
            config = yaml.safe_load(f) or {}
    else:
        config = {}

    # Resolve database path relative to project root
    db_rel = os.getenv("YTKB_DB_PATH") or config.get("database", {}).get(
        "path", "data/youtube_knowledge.db"
    )
    config["db_path"] = str(PROJECT_ROOT / db_rel)

    # Resolve log file path
    log_rel = config.get("logging", {}).get("file")
    if log_rel:
        config["log_file"] = str(PROJECT_ROOT / log_rel)
    else:
        config["log_file"] = None

    config["log_level"] = config.get("logging", {}).get("level", "INFO")

    return config


def get_ollama_config(config: dict) -> dict:
    """Extract Ollama-specific settings with defaults."""
    ollama = config.get("ollama", {})
    return {
        "model": ollama.get("model", "llama3.2"),
        "embedding_model": ollama.get("embedding_model", "nomic-embed-text"),
        "ollama_url": os.getenv("OLLAMA_URL") or ollama.get("url", "http://localhost:11434"),
        "temperature": ollama.get("temperature", 0.2),
        "chat_timeout": ollama.get("chat_timeout", 120),
        "embedding_timeout": ollama.get("embedding_timeout", 30),
    }


def get_transcript_config(config: dict) -> dict:
    """Extract transcript-specific settings with defaults."""
    tc = config.get("transcripts", {})
    return {
        "preferred_language": tc.get("preferred_language", "en"),
        "request_timeout": tc.get("request_timeout", 15),
        "allow_speech_to_text": tc.get("allow_speech_to_text", False),
        "ytdlp_binary": tc.get("ytdlp_binary", "yt-dlp"),
        "download_timeout": tc.get("download_timeout", 600),
    }


def get_speech_config(config: dict) -> dict:
    """Extract speech-to-text service settings with defaults."""
    sc = config.get("speech_to_text", {})
    return {
        "url": os.getenv("SPEECH_TO_TEXT_URL") or sc.get("url", "https://api.openai.com"),
        "api_key": os.getenv("SPEECH_TO_TEXT_API_KEY") or sc.get("api_key"),
        "model": sc.get("model", "whisper-1"),
        "language": sc.get("language", "en"),
        "timeout": sc.get("timeout", 300),
    }


def get_retrieval_config(config: dict) -> dict:
    """Extract chunking and ranking settings with defaults."""
    rc = config.get("retrieval", {})
    return {
        "chunk_size": rc.get("chunk_size", 500),
        "chunk_overlap": rc.get("chunk_overlap", 50),
        "top_k": rc.get("top_k", 3),
        "embedding_workers": rc.get("embedding_workers", 4),
    }
