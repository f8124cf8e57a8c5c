"""Language constants — the whitelist accepted by the translation routes.

Codes are ISO-639-1 and must match the language codes the translation
provider expects in its pipeline configuration.
"""

# Used for frontend dropdowns and i18n localization
SUPPORTED_LANGUAGES = ['en', 'hi', 'mr', 'ta', 'te', 'gu', 'pa', 'or', 'ml']

LANGUAGE_NAMES = {
    'en': 'English',
    'hi': 'Hindi',
    'mr': 'Marathi',
    'ta': 'Tamil',
    'te': 'Telugu',
    'gu': 'Gujarati',
    'pa': 'Punjabi',
    'or': 'Odia',
    'ml': 'Malayalam',
}


def is_valid_language(lang_code) -> bool:
    """Check if a language code is supported. Codes are case-sensitive."""
    return lang_code in SUPPORTED_LANGUAGES
