"""Exceptions raised by the translation services.

Every error carries an HTTP-equivalent ``status_code`` so the routing layer
can render it without knowing where it came from.
"""


class TranslationError(Exception):
    """Base class for translation service failures."""

    status_code = 500


class EmptyInputError(TranslationError):
    """Source text is empty after trimming."""

    status_code = 400

    def __init__(self, message='source text cannot be empty'):
        super().__init__(message)


# Upstream configuration problems

class ConfigError(TranslationError):
    """Pipeline configuration could not be fetched (credentials or provider)."""


class NoServiceError(TranslationError):
    """The pipeline configuration has no translation service entries."""

    def __init__(self, message='could not find service ID for translation task'):
        super().__init__(message)


class PipelineUnavailableError(TranslationError):
    """Both the active pipeline and its fallback failed to configure."""

    def __init__(self, pipeline_id, cause):
        self.pipeline_id = pipeline_id
        self.cause = cause
        super().__init__(f"failed to get pipeline config (pipeline {pipeline_id}): {cause}")


# Upstream execution problems

class EmptyCallbackError(TranslationError):
    """The pipeline configuration has no inference endpoint."""

    def __init__(self, message='callback URL not found in pipeline config'):
        super().__init__(message)


class NoOutputError(TranslationError):
    """The provider answered without a translation output."""

    def __init__(self, message='no translation output received'):
        super().__init__(message)


class RemoteError(TranslationError):
    """The inference endpoint returned a non-success status."""

    def __init__(self, status, body, payload):
        self.status = status
        self.body = body
        self.payload = payload
        super().__init__(
            f"API returned status {status}: {body}. Request payload was: {payload}"
        )


class TransportError(TranslationError):
    """Timeout or connection failure talking to the provider."""


class TranslationFailedError(TranslationError):
    """Executing the translation against the pipeline failed."""

    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"failed to translate: {cause}")


class BatchItemError(TranslationError):
    """One item of a batch failed; the whole batch is rejected."""

    def __init__(self, index, cause):
        self.index = index
        self.cause = cause
        self.status_code = getattr(cause, 'status_code', 500)
        super().__init__(f"item[{index}]: {cause}")


class CacheStoreError(TranslationError):
    """The translation cache could not be written or swept."""
