"""Translation service: cache-aside orchestration over the pipeline client."""
import logging
from datetime import timedelta

from flask import current_app

from app.services.bhashini import (
    BhashiniClient,
    KNOWN_PIPELINES,
    SearchPipelineResolver,
    StaticPipelineResolver,
)
from app.services.errors import (
    BatchItemError,
    CacheStoreError,
    EmptyInputError,
    PipelineUnavailableError,
    TranslationError,
    TranslationFailedError,
)
from app.services.translation_cache import CacheLookupStatus, CacheStore, cache_key
from app.utils.durations import parse_duration

logger = logging.getLogger(__name__)

DEFAULT_PIPELINE_ID = KNOWN_PIPELINES[0]
DEFAULT_CACHE_TTL = timedelta(hours=24)

EXTENSION_KEY = 'translation_service'


class TranslationService:
    """
    Translate text with a persistent cache in front of the remote pipeline.

    ``active_pipeline_id`` starts at the configured default and moves to the
    resolver's alternate after a failed config fetch. Concurrent requests may
    race on it; the worst case is one extra config call.
    """

    def __init__(self, client, cache, default_pipeline_id=DEFAULT_PIPELINE_ID,
                 cache_ttl=DEFAULT_CACHE_TTL):
        self.client = client
        self.cache = cache
        self.active_pipeline_id = default_pipeline_id
        self.cache_ttl = cache_ttl

    def translate(self, source_text: str, source_lang: str, target_lang: str) -> str:
        """
        Translate text from source language to target language with caching.

        Args:
            source_text: Text to translate (surrounding whitespace is ignored)
            source_lang: Source language code, already validated
            target_lang: Target language code, already validated

        Returns:
            The translated text

        Raises:
            EmptyInputError: text is empty after trimming
            PipelineUnavailableError: neither the active nor the fallback pipeline configured
            TranslationFailedError: the pipeline call failed
        """
        source_text = (source_text or '').strip()
        if not source_text:
            raise EmptyInputError()

        key = cache_key(source_text, source_lang, target_lang)
        lookup = self.cache.get(source_text, source_lang, target_lang)
        if lookup.found:
            logger.debug(f"Cache hit {key[:12]} ({source_lang}->{target_lang})")
            return lookup.translated_text
        if lookup.status is CacheLookupStatus.UNAVAILABLE:
            logger.warning(f"Cache lookup unavailable, calling pipeline directly: {lookup.error}")
        else:
            logger.debug(f"Cache miss {key[:12]} ({source_lang}->{target_lang})")

        config = self._pipeline_config(source_lang, target_lang)

        try:
            translated_text = self.client.execute(config, source_text, source_lang, target_lang)
        except TranslationError as e:
            raise TranslationFailedError(e) from e

        try:
            self.cache.put(source_text, source_lang, target_lang, translated_text, self.cache_ttl)
        except CacheStoreError as e:
            logger.error(f"Cache storage error for {key[:12]}: {e}")

        return translated_text

    def _pipeline_config(self, source_lang, target_lang):
        """Fetch config for the active pipeline, falling back once to an alternate."""
        failed_id = self.active_pipeline_id
        try:
            return self.client.fetch_config(failed_id, source_lang, target_lang)
        except TranslationError as e:
            logger.warning(f"Pipeline {failed_id} config failed, trying fallback: {e}")

        try:
            pipeline_id = self.client.resolve_pipeline(exclude=[failed_id])
        except TranslationError as e:
            raise PipelineUnavailableError(failed_id, e) from e

        self.active_pipeline_id = pipeline_id
        try:
            return self.client.fetch_config(pipeline_id, source_lang, target_lang)
        except TranslationError as e:
            raise PipelineUnavailableError(pipeline_id, e) from e

    def translate_batch(self, items) -> list[str]:
        """
        Translate several items in order. All-or-nothing: the first failing
        item aborts the batch with its index.

        Args:
            items: (source_text, source_lang, target_lang) triples or dicts
                with those keys

        Raises:
            BatchItemError: carries the failing index and the original error
        """
        results = []
        for index, item in enumerate(items):
            if isinstance(item, dict):
                source_text = item.get('source_text')
                source_lang = item.get('source_lang')
                target_lang = item.get('target_lang')
            else:
                source_text, source_lang, target_lang = item

            try:
                results.append(self.translate(source_text, source_lang, target_lang))
            except TranslationError as e:
                raise BatchItemError(index, e) from e
        return results

    def clean_expired_cache(self) -> int:
        """Remove expired cache entries."""
        return self.cache.sweep_expired()


def build_client(config) -> BhashiniClient:
    """Create the pipeline client described by the app config."""
    client = BhashiniClient(
        base_url=config.get('BHASHINI_BASE_URL'),
        user_id=config.get('BHASHINI_USER_ID', ''),
        api_key=config.get('BHASHINI_API_KEY', ''),
        timeout=config.get('BHASHINI_TIMEOUT', 30),
    )
    if config.get('BHASHINI_PIPELINE_DISCOVERY', 'static') == 'search':
        client.resolver = SearchPipelineResolver(client, fallback=StaticPipelineResolver())
    return client


def init_translation_service(app):
    """Build the app's translation service from its config."""
    service = TranslationService(
        client=build_client(app.config),
        cache=CacheStore(),
        default_pipeline_id=app.config.get('BHASHINI_PIPELINE_ID') or DEFAULT_PIPELINE_ID,
        cache_ttl=parse_duration(app.config.get('TRANSLATION_CACHE_TTL'), DEFAULT_CACHE_TTL),
    )
    app.extensions[EXTENSION_KEY] = service
    return service


def get_translation_service() -> TranslationService:
    """Get the translation service of the current app."""
    return current_app.extensions[EXTENSION_KEY]
