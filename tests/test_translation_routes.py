"""
Tests for the translation HTTP endpoints.

Run with:
    pytest tests/test_translation_routes.py -v
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from app.constants import SUPPORTED_LANGUAGES
from app.models import TranslationCache
from app.services.translation_cache import CacheStore, utcnow

from conftest import FakePipelineClient

BASE = '/api/v1/translation'


# ============================================================
#  HEALTH
# ============================================================

class TestHealthEndpoints:
    """Verify the server boots and responds."""

    def test_root_health(self, client):
        resp = client.get('/health')
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['status'] == 'ok'
        assert data['service'] == 'translation-service'

    def test_unknown_route_is_json_error(self, client):
        resp = client.get(f'{BASE}/missing')

        assert resp.status_code == 404
        assert resp.get_json()['status'] == 'error'

    def test_unexpected_error_is_json_500(self, client, translation_service):
        translation_service.client = Mock()
        translation_service.client.fetch_config.side_effect = AttributeError(
            "'str' object has no attribute 'get'"
        )

        resp = client.post(f'{BASE}/translate', json={
            'source_text': 'Hello',
            'source_lang': 'en',
            'target_lang': 'hi',
        })

        assert resp.status_code == 500
        assert resp.get_json() == {'status': 'error', 'error': 'internal server error'}


# ============================================================
#  SINGLE TRANSLATION
# ============================================================

class TestTranslate:
    """Tests for POST /translate"""

    def test_translate_success(self, client, translation_service, fake_client):
        fake_client.translations[('Hello', 'hi')] = 'नमस्ते'

        resp = client.post(f'{BASE}/translate', json={
            'source_text': 'Hello',
            'source_lang': 'en',
            'target_lang': 'hi',
        })

        assert resp.status_code == 200
        data = resp.get_json()
        assert data['status'] == 'success'
        assert data['data'] == {
            'source_text': 'Hello',
            'source_lang': 'en',
            'target_lang': 'hi',
            'translated_text': 'नमस्ते',
        }

    def test_repeat_request_served_from_cache(self, client, translation_service, fake_client):
        body = {'source_text': 'Thank you', 'source_lang': 'en', 'target_lang': 'gu'}

        client.post(f'{BASE}/translate', json=body)
        resp = client.post(f'{BASE}/translate', json=body)

        assert resp.status_code == 200
        assert len(fake_client.execute_calls) == 1
        assert TranslationCache.query.count() == 1

    @pytest.mark.parametrize('body', [
        {'source_lang': 'en', 'target_lang': 'hi'},
        {'source_text': 'Hello', 'target_lang': 'hi'},
        {'source_text': 'Hello', 'source_lang': 'en'},
        {'source_text': '', 'source_lang': 'en', 'target_lang': 'hi'},
    ])
    def test_missing_fields(self, client, translation_service, fake_client, body):
        resp = client.post(f'{BASE}/translate', json=body)

        assert resp.status_code == 400
        assert resp.get_json()['status'] == 'error'
        assert fake_client.fetch_calls == []

    def test_unsupported_language(self, client, translation_service):
        resp = client.post(f'{BASE}/translate', json={
            'source_text': 'Hello',
            'source_lang': 'en',
            'target_lang': 'fr',
        })

        assert resp.status_code == 400
        assert "target_lang 'fr' is not supported" in resp.get_json()['error']

    def test_invalid_body(self, client, translation_service):
        resp = client.post(f'{BASE}/translate', data='not json', content_type='application/json')

        assert resp.status_code == 400

    def test_whitespace_text_is_rejected(self, client, translation_service, fake_client):
        resp = client.post(f'{BASE}/translate', json={
            'source_text': '   ',
            'source_lang': 'en',
            'target_lang': 'hi',
        })

        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'source text cannot be empty'
        assert fake_client.fetch_calls == []

    def test_pipeline_unavailable(self, client, translation_service):
        translation_service.client = FakePipelineClient(config_failures=10)

        resp = client.post(f'{BASE}/translate', json={
            'source_text': 'Hello',
            'source_lang': 'en',
            'target_lang': 'hi',
        })

        assert resp.status_code == 500
        assert 'failed to get pipeline config' in resp.get_json()['error']


# ============================================================
#  BATCH TRANSLATION
# ============================================================

class TestTranslateBatch:
    """Tests for POST /translate/batch"""

    def test_batch_success(self, client, translation_service, fake_client):
        fake_client.translations.update({
            ('Hello', 'hi'): 'नमस्ते',
            ('World', 'ta'): 'உலகம்',
        })

        resp = client.post(f'{BASE}/translate/batch', json={'items': [
            {'source_text': 'Hello', 'source_lang': 'en', 'target_lang': 'hi'},
            {'source_text': 'World', 'source_lang': 'en', 'target_lang': 'ta'},
        ]})

        assert resp.status_code == 200
        data = resp.get_json()['data']
        assert data['source_texts'] == ['Hello', 'World']
        assert data['source_langs'] == ['en', 'en']
        assert data['target_langs'] == ['hi', 'ta']
        assert data['translated_texts'] == ['नमस्ते', 'உலகம்']

    @pytest.mark.parametrize('body', [{}, {'items': []}, {'items': 'Hello'}])
    def test_items_required(self, client, translation_service, body):
        resp = client.post(f'{BASE}/translate/batch', json=body)

        assert resp.status_code == 400
        assert 'items array is required' in resp.get_json()['error']

    def test_invalid_item_reports_index(self, client, translation_service, fake_client):
        resp = client.post(f'{BASE}/translate/batch', json={'items': [
            {'source_text': 'Hello', 'source_lang': 'en', 'target_lang': 'hi'},
            {'source_text': '', 'source_lang': 'en', 'target_lang': 'hi'},
        ]})

        assert resp.status_code == 400
        assert resp.get_json()['error'].startswith('item[1]:')
        assert fake_client.execute_calls == []

    def test_whitespace_item_fails_whole_batch(self, client, translation_service):
        resp = client.post(f'{BASE}/translate/batch', json={'items': [
            {'source_text': 'Hello', 'source_lang': 'en', 'target_lang': 'hi'},
            {'source_text': '  ', 'source_lang': 'en', 'target_lang': 'hi'},
        ]})

        assert resp.status_code == 400
        data = resp.get_json()
        assert data['status'] == 'error'
        assert data['error'].startswith('item[1]:')
        assert 'data' not in data

    def test_remote_failure_fails_whole_batch(self, client, translation_service, fake_client):
        fake_client.failing_texts.add('World')

        resp = client.post(f'{BASE}/translate/batch', json={'items': [
            {'source_text': 'Hello', 'source_lang': 'en', 'target_lang': 'hi'},
            {'source_text': 'World', 'source_lang': 'en', 'target_lang': 'hi'},
        ]})

        assert resp.status_code == 500
        assert resp.get_json()['error'].startswith('item[1]: failed to translate')


# ============================================================
#  LANGUAGES & CACHE
# ============================================================

class TestLanguages:

    def test_lists_supported_codes(self, client):
        resp = client.get(f'{BASE}/languages')

        assert resp.status_code == 200
        data = resp.get_json()
        assert data['data'] == SUPPORTED_LANGUAGES
        assert data['names']['hi'] == 'Hindi'


class TestCleanCache:

    def test_removes_expired_entries(self, client, translation_service):
        past = utcnow() - timedelta(days=2)
        CacheStore(clock=lambda: past).put('Old', 'en', 'hi', 'पुराना', timedelta(days=1))
        CacheStore().put('New', 'en', 'hi', 'नया', timedelta(days=1))

        resp = client.post(f'{BASE}/cache/clean')

        assert resp.status_code == 200
        assert resp.get_json()['removed'] == 1
        assert TranslationCache.query.count() == 1
