"""Shared constants for the application."""

from app.constants.languages import (
    SUPPORTED_LANGUAGES,
    LANGUAGE_NAMES,
    is_valid_language,
)

__all__ = [
    'SUPPORTED_LANGUAGES',
    'LANGUAGE_NAMES',
    'is_valid_language',
]
