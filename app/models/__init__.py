"""Database models for the translation service."""

from .translation_cache import TranslationCache

__all__ = ['TranslationCache']
