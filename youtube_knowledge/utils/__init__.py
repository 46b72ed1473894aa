"""Logging setup and upstream-call error mapping."""
