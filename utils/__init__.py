"""Shared helpers: the Result wrapper and upstream error type."""
