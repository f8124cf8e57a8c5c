"""Client for the Bhashini (ULCA) pipeline translation API.

Translation is a two-step protocol:

1. Ask the configuration endpoint which inference endpoint, auth header and
   per-language-pair service ids a pipeline uses for the ``translation`` task.
2. Send the text to that inference endpoint as a single-item batch.

Neither step is retried here; the orchestrator owns the one allowed
pipeline fallback.
"""
import json
import logging
from dataclasses import dataclass, field

import requests

from app.services.errors import (
    ConfigError,
    EmptyCallbackError,
    NoOutputError,
    NoServiceError,
    RemoteError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'https://meity-auth.ulcacontrib.org'
CONFIG_PATH = '/ulca/apis/v0/model/getModelsPipeline'
TASK_TYPE = 'translation'
DEFAULT_TIMEOUT = 30
MIN_API_KEY_LENGTH = 20

# Pre-validated pipelines that support translation, most comprehensive first
KNOWN_PIPELINES = (
    '64392f96daac500b55c543cd',  # Initial Pipeline (Translation, ASR, Transliteration, TTS)
    '660f813c0413087224435d2c',  # IIT Bombay (Translation)
    '660f866443e53d4133f65317',  # IIIT Hyderabad (Translation)
)


@dataclass(frozen=True)
class PipelineConfig:
    """Runtime configuration of a pipeline for one language pair."""

    endpoint_url: str
    auth_header_name: str
    auth_header_value: str
    service_id: str
    source_lang: str
    target_lang: str
    service_ids: dict = field(default_factory=dict)

    @classmethod
    def from_response(cls, data: dict, source_lang: str, target_lang: str) -> 'PipelineConfig':
        """Build a config from the provider's getModelsPipeline response.

        Raises ConfigError when the response does not have the documented shape.
        """
        endpoint = _expect(data.get('pipelineInferenceAPIEndPoint') or {}, dict,
                           'pipelineInferenceAPIEndPoint')
        api_key = _expect(endpoint.get('inferenceApiKey') or {}, dict, 'inferenceApiKey')

        entries = translation_entries(data)
        service_ids = {}
        for entry in entries:
            language = entry.get('language') or {}
            pair = (language.get('sourceLanguage'), language.get('targetLanguage'))
            service_ids.setdefault(pair, entry.get('serviceId', ''))

        return cls(
            endpoint_url=endpoint.get('callbackUrl') or '',
            auth_header_name=api_key.get('name') or '',
            auth_header_value=api_key.get('value') or '',
            service_id=select_service_id(entries, source_lang, target_lang),
            source_lang=source_lang,
            target_lang=target_lang,
            service_ids=service_ids,
        )


def _expect(value, kind, where):
    if not isinstance(value, kind):
        raise ConfigError(f"unexpected pipeline config response: {where} is {type(value).__name__}")
    return value


def translation_entries(data: dict) -> list:
    """All config entries of every translation-typed task, in provider order."""
    entries = []
    task_configs = _expect(data.get('pipelineResponseConfig') or [], list, 'pipelineResponseConfig')
    for task_config in task_configs:
        _expect(task_config, dict, 'pipelineResponseConfig item')
        if task_config.get('taskType') != TASK_TYPE:
            continue
        for entry in _expect(task_config.get('config') or [], list, 'config'):
            _expect(entry, dict, 'config entry')
            _expect(entry.get('language') or {}, dict, 'language')
            entries.append(entry)
    return entries


def select_service_id(entries: list, source_lang: str, target_lang: str) -> str:
    """
    Pick the service id for a language pair.

    An exact (source, target) match wins; otherwise the first translation
    entry is used. Raises NoServiceError when there are no entries at all.
    """
    for entry in entries:
        language = entry.get('language') or {}
        if (language.get('sourceLanguage') == source_lang
                and language.get('targetLanguage') == target_lang
                and entry.get('serviceId')):
            return entry['serviceId']

    if entries and entries[0].get('serviceId'):
        logger.debug(
            f"No service for {source_lang}->{target_lang}, "
            f"using first entry {entries[0]['serviceId']}"
        )
        return entries[0]['serviceId']

    raise NoServiceError()


def build_compute_payload(config: PipelineConfig, source_text: str,
                          source_lang: str, target_lang: str) -> dict:
    return {
        'pipelineTasks': [
            {
                'taskType': TASK_TYPE,
                'config': {
                    'language': {
                        'sourceLanguage': source_lang,
                        'targetLanguage': target_lang,
                    },
                    'serviceId': config.service_id,
                },
            }
        ],
        'inputData': {
            'input': [{'source': source_text}],
        },
    }


def extract_translation(data: dict) -> str:
    """Return the first output of the first translation task that has one."""
    pipeline_response = data.get('pipelineResponse') if isinstance(data, dict) else None
    if not pipeline_response:
        raise NoOutputError('no pipeline response received')

    if not isinstance(pipeline_response, list):
        raise NoOutputError('unexpected pipeline response format')

    for item in pipeline_response:
        if not isinstance(item, dict) or item.get('taskType') != TASK_TYPE:
            continue
        outputs = item.get('output')
        if not isinstance(outputs, list) or not outputs or not isinstance(outputs[0], dict):
            continue
        target = outputs[0].get('target')
        if isinstance(target, str) and target:
            return target

    raise NoOutputError()


def _is_success(response) -> bool:
    return 200 <= response.status_code < 300


class StaticPipelineResolver:
    """Resolve pipelines from a fixed, ordered list of known-good ids."""

    def __init__(self, pipeline_ids=KNOWN_PIPELINES):
        self.pipeline_ids = tuple(pipeline_ids)

    def resolve(self, exclude=None) -> str:
        if not self.pipeline_ids:
            raise ConfigError('no valid translation pipeline found')

        excluded = set(exclude or ())
        for pipeline_id in self.pipeline_ids:
            if pipeline_id not in excluded:
                return pipeline_id
        return self.pipeline_ids[0]


class SearchPipelineResolver:
    """
    Resolve pipelines by asking the provider which ones support translation.

    Falls back to a static resolver when the search fails or returns
    nothing usable.
    """

    def __init__(self, client, fallback=None):
        self.client = client
        self.fallback = fallback or StaticPipelineResolver()

    def resolve(self, exclude=None) -> str:
        excluded = set(exclude or ())
        try:
            pipelines = self.client.search_pipelines()
        except (ConfigError, TransportError) as e:
            logger.warning(f"Pipeline search failed, using known pipelines: {e}")
            return self.fallback.resolve(exclude)

        for pipeline in pipelines if isinstance(pipelines, list) else []:
            if not isinstance(pipeline, dict):
                continue
            pipeline_id = pipeline.get('pipelineId')
            task_types = pipeline.get('taskType') or [TASK_TYPE]
            if pipeline_id and TASK_TYPE in task_types and pipeline_id not in excluded:
                return pipeline_id

        logger.warning("Pipeline search returned no usable translation pipeline")
        return self.fallback.resolve(exclude)


class BhashiniClient:
    """Handles communication with the Bhashini pipeline API."""

    def __init__(self, base_url=None, user_id='', api_key='', timeout=DEFAULT_TIMEOUT,
                 resolver=None, session=None):
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip('/')
        self.user_id = (user_id or '').strip()
        self.api_key = (api_key or '').strip()
        self.timeout = timeout
        self.resolver = resolver or StaticPipelineResolver()
        self.session = session or requests.Session()

    @property
    def config_url(self) -> str:
        return self.base_url + CONFIG_PATH

    def _credential_headers(self) -> dict:
        return {
            'Content-Type': 'application/json',
            'userID': self.user_id,
            'ulcaApiKey': self.api_key,
        }

    def _check_credentials(self):
        if not self.user_id:
            raise ConfigError('BHASHINI_USER_ID is not set or empty')
        if not self.api_key:
            raise ConfigError(
                'BHASHINI_API_KEY is not set or empty. '
                'Get your API key from https://bhashini.gov.in/ulca/dashboard'
            )
        if len(self.api_key) < MIN_API_KEY_LENGTH:
            raise ConfigError(
                f"API key seems too short ({len(self.api_key)} chars) - verify you're "
                f"using the correct ulcaApiKey from the dashboard"
            )

    def _post(self, url, payload, headers):
        try:
            return self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportError(f"request to {url} timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise TransportError(f"failed to execute request: {e}") from e

    def resolve_pipeline(self, exclude=None) -> str:
        """Return a pipeline id to try, skipping any in ``exclude`` when possible."""
        return self.resolver.resolve(exclude)

    def search_pipelines(self, task_type=TASK_TYPE) -> list:
        """List the provider's pipelines supporting ``task_type``."""
        self._check_credentials()

        response = self._post(self.config_url, {'taskType': [task_type]}, self._credential_headers())
        if not _is_success(response):
            raise ConfigError(f"API returned status {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise ConfigError(f"failed to unmarshal response: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"unexpected pipeline search response: {response.text}")
        return data.get('pipelines') or []

    def fetch_config(self, pipeline_id: str, source_lang: str, target_lang: str) -> PipelineConfig:
        """
        Fetch the translation configuration of a pipeline.

        Raises:
            ConfigError: credentials missing/malformed or the provider rejected the request
            NoServiceError: the pipeline has no translation services
            TransportError: timeout or connection failure
        """
        self._check_credentials()

        payload = {
            'pipelineTasks': [{'taskType': TASK_TYPE}],
            'pipelineRequestConfig': {'pipelineId': pipeline_id},
        }
        response = self._post(self.config_url, payload, self._credential_headers())

        if not _is_success(response):
            if response.status_code == 400:
                raise ConfigError(
                    f"API returned status 400: {response.text}. Verify: 1) API key is the "
                    f"'ulcaApiKey' from 'My Profile' section, 2) key is active in the "
                    f"dashboard, 3) no extra spaces or quotes in .env"
                )
            raise ConfigError(f"API returned status {response.status_code}: {response.text}")

        try:
            data = response.json()
        except ValueError as e:
            raise ConfigError(f"failed to unmarshal response: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"unexpected pipeline config response: {response.text}")

        return PipelineConfig.from_response(data, source_lang, target_lang)

    def execute(self, config: PipelineConfig, source_text: str,
                source_lang: str, target_lang: str) -> str:
        """
        Translate ``source_text`` through the pipeline's inference endpoint.

        Raises:
            EmptyCallbackError: config has no endpoint URL
            RemoteError: non-success HTTP status
            NoOutputError: response carries no translation output
            TransportError: timeout or connection failure
        """
        if not config.endpoint_url:
            raise EmptyCallbackError()

        payload = build_compute_payload(config, source_text, source_lang, target_lang)
        headers = {'Content-Type': 'application/json'}
        if config.auth_header_name and config.auth_header_value:
            headers[config.auth_header_name] = config.auth_header_value

        response = self._post(config.endpoint_url, payload, headers)
        sent = json.dumps(payload, ensure_ascii=False)
        if not _is_success(response):
            raise RemoteError(response.status_code, response.text, sent)

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteError(response.status_code, f"invalid JSON: {e}", sent) from e

        return extract_translation(data)
