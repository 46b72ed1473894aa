"""Blueprints registered under /api."""
