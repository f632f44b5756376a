"""Shared helpers: logging, errors, naming and batching utilities."""
