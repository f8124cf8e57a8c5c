"""Shared utilities for the translation service."""

from app.utils.durations import parse_duration

__all__ = [
    'parse_duration',
]
