"""Prompt templates for the chat model."""
