"""Turning a YouTube URL into stored, embedded transcript chunks."""
