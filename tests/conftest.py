"""
Pytest configuration and fixtures for testing the translation service.
"""

import os
import sys
import pytest
from faker import Faker

# Add the parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app, db
from app.services.bhashini import KNOWN_PIPELINES, PipelineConfig
from app.services.errors import ConfigError, RemoteError
from app.services.translation import EXTENSION_KEY, TranslationService
from app.services.translation_cache import CacheStore

fake = Faker()


class FakePipelineClient:
    """In-memory stand-in for BhashiniClient that records every call.

    Args:
        translations: {(source_text, target_lang): translated_text}
        config_failures: number of leading fetch_config calls that fail
        failing_texts: source texts whose execute call fails
        resolve_error: exception raised by resolve_pipeline
    """

    def __init__(self, translations=None, config_failures=0, failing_texts=(),
                 resolve_error=None, pipelines=KNOWN_PIPELINES):
        self.translations = translations or {}
        self.config_failures = config_failures
        self.failing_texts = set(failing_texts)
        self.resolve_error = resolve_error
        self.pipelines = tuple(pipelines)
        self.fetch_calls = []
        self.execute_calls = []
        self.resolve_calls = []

    def resolve_pipeline(self, exclude=None):
        self.resolve_calls.append(list(exclude or []))
        if self.resolve_error:
            raise self.resolve_error
        for pipeline_id in self.pipelines:
            if pipeline_id not in (exclude or []):
                return pipeline_id
        return self.pipelines[0]

    def fetch_config(self, pipeline_id, source_lang, target_lang):
        self.fetch_calls.append(pipeline_id)
        if len(self.fetch_calls) <= self.config_failures:
            raise ConfigError(f"API returned status 400: pipeline {pipeline_id} rejected")
        return PipelineConfig(
            endpoint_url='https://dhruva.example.org/services/inference/pipeline',
            auth_header_name='Authorization',
            auth_header_value='inference-token',
            service_id='ai4bharat/indictrans-v2-all-gpu',
            source_lang=source_lang,
            target_lang=target_lang,
        )

    def execute(self, config, source_text, source_lang, target_lang):
        self.execute_calls.append((source_text, source_lang, target_lang))
        if source_text in self.failing_texts:
            raise RemoteError(500, 'inference backend error', '{"inputData": {}}')
        return self.translations.get((source_text, target_lang), f"[{target_lang}] {source_text}")


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    os.environ['FLASK_ENV'] = 'testing'
    os.environ['BHASHINI_USER_ID'] = 'test-user'
    os.environ['BHASHINI_API_KEY'] = 'test-api-key-0123456789abcdef'

    app = create_app('testing')

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client for each test function."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create a fresh database session for each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        yield db.session
        db.session.rollback()


@pytest.fixture
def fake_client():
    return FakePipelineClient()


@pytest.fixture
def translation_service(app, db_session, fake_client):
    """Install a translation service backed by the fake pipeline client."""
    original = app.extensions[EXTENSION_KEY]
    service = TranslationService(
        client=fake_client,
        cache=CacheStore(),
        default_pipeline_id=KNOWN_PIPELINES[0],
    )
    app.extensions[EXTENSION_KEY] = service
    yield service
    app.extensions[EXTENSION_KEY] = original
