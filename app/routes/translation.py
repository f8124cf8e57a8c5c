"""Translation routes: single and batch translation, languages, cache cleanup."""

from flask import Blueprint, request, jsonify
from app.constants import SUPPORTED_LANGUAGES, LANGUAGE_NAMES, is_valid_language
from app.services.translation import get_translation_service

translation_bp = Blueprint('translation', __name__)

REQUIRED_FIELDS = ('source_text', 'source_lang', 'target_lang')


def _error(message, status=400):
    return jsonify({'status': 'error', 'error': message}), status


def validate_item(item):
    """Return an error message for an invalid translation item, or None."""
    if not isinstance(item, dict):
        return 'item must be an object'

    if not all(isinstance(item.get(k), str) and item.get(k) for k in REQUIRED_FIELDS):
        return 'source_text, source_lang, and target_lang are required'

    if not is_valid_language(item['source_lang']):
        return f"source_lang '{item['source_lang']}' is not supported"
    if not is_valid_language(item['target_lang']):
        return f"target_lang '{item['target_lang']}' is not supported"

    return None


@translation_bp.route('/translate', methods=['POST'])
def translate():
    """Translate a single text.

    Body: {"source_text": "Hello", "source_lang": "en", "target_lang": "hi"}
    """
    data = request.get_json(silent=True)
    if data is None:
        return _error('Invalid request body: expected JSON object')

    message = validate_item(data)
    if message:
        return _error(message)

    translated_text = get_translation_service().translate(
        data['source_text'], data['source_lang'], data['target_lang']
    )

    return jsonify({
        'status': 'success',
        'data': {
            'source_text': data['source_text'],
            'source_lang': data['source_lang'],
            'target_lang': data['target_lang'],
            'translated_text': translated_text,
        }
    }), 200


@translation_bp.route('/translate/batch', methods=['POST'])
def translate_batch():
    """Translate multiple texts, each with its own language pair.

    Body: {"items": [{"source_text": "Hello", "source_lang": "en", "target_lang": "hi"}, ...]}

    Returns parallel arrays source_texts, source_langs, target_langs and
    translated_texts. Any failing item fails the whole request.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error('Invalid request body: expected JSON object')

    items = data.get('items')
    if not isinstance(items, list) or not items:
        return _error('items array is required and cannot be empty')

    for i, item in enumerate(items):
        message = validate_item(item)
        if message:
            return _error(f'item[{i}]: {message}')

    translated_texts = get_translation_service().translate_batch(items)

    return jsonify({
        'status': 'success',
        'data': {
            'source_texts': [item['source_text'] for item in items],
            'source_langs': [item['source_lang'] for item in items],
            'target_langs': [item['target_lang'] for item in items],
            'translated_texts': translated_texts,
        }
    }), 200


@translation_bp.route('/languages', methods=['GET'])
def languages():
    """List supported language codes (ISO-639) for dropdowns and i18n."""
    return jsonify({
        'status': 'success',
        'data': SUPPORTED_LANGUAGES,
        'names': LANGUAGE_NAMES,
    }), 200


@translation_bp.route('/cache/clean', methods=['POST'])
def clean_cache():
    """Remove expired translation cache entries."""
    removed = get_translation_service().clean_expired_cache()
    return jsonify({
        'status': 'success',
        'message': 'Expired cache entries cleaned',
        'removed': removed,
    }), 200
