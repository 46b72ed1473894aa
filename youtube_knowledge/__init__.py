"""Question answering over YouTube video transcripts."""

__version__ = "0.1.0"
