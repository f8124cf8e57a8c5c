"""Persistent translation cache with per-entry expiry."""
import enum
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import db
from app.models import TranslationCache
from app.services.errors import CacheStoreError

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT DO UPDATE
_UPSERT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_text_hash(text: str) -> str:
    """Generate a hash for the source text to use in the unique key."""
    return hashlib.sha256(text.encode('utf-8')).hexdigest()


def cache_key(source_text: str, source_lang: str, target_lang: str) -> str:
    """Stable identifier for a (text, source, target) triple, used in logs."""
    data = f"{source_text}:{source_lang}:{target_lang}"
    return hashlib.sha256(data.encode('utf-8')).hexdigest()


class CacheLookupStatus(enum.Enum):
    HIT = 'hit'
    MISS = 'miss'
    UNAVAILABLE = 'unavailable'


@dataclass(frozen=True)
class CacheLookup:
    """Result of a cache read: a hit, a genuine miss, or a store failure."""

    status: CacheLookupStatus
    translated_text: str | None = None
    error: Exception | None = None

    @property
    def found(self) -> bool:
        return self.status is CacheLookupStatus.HIT

    @classmethod
    def hit(cls, translated_text):
        return cls(CacheLookupStatus.HIT, translated_text=translated_text)

    @classmethod
    def miss(cls):
        return cls(CacheLookupStatus.MISS)

    @classmethod
    def unavailable(cls, error):
        return cls(CacheLookupStatus.UNAVAILABLE, error=error)


class CacheStore:
    """
    Key-value-with-expiry store over the ``translation_cache`` table.

    Expiry is always compared against the clock at read time, so an expired
    row that has not been swept yet is never returned.
    """

    def __init__(self, clock=None):
        self.clock = clock or utcnow

    def get(self, source_text: str, source_lang: str, target_lang: str) -> CacheLookup:
        """Return the most recent live entry for the key, or a miss/unavailable marker."""
        try:
            entry = TranslationCache.query.filter(
                TranslationCache.text_hash == get_text_hash(source_text),
                TranslationCache.source_text == source_text,
                TranslationCache.source_lang == source_lang,
                TranslationCache.target_lang == target_lang,
                TranslationCache.expires_at > self.clock(),
            ).order_by(TranslationCache.created_at.desc()).first()
        except SQLAlchemyError as e:
            db.session.rollback()
            return CacheLookup.unavailable(e)

        if entry is None:
            return CacheLookup.miss()
        return CacheLookup.hit(entry.translated_text)

    def put(self, source_text: str, source_lang: str, target_lang: str,
            translated_text: str, ttl: timedelta) -> None:
        """Upsert an entry expiring ``ttl`` from now. Last write wins."""
        now = self.clock()
        try:
            expires_at = now + ttl
        except (OverflowError, TypeError) as e:
            raise CacheStoreError(f"cache storage error: invalid ttl {ttl!r}: {e}") from e

        values = {
            'text_hash': get_text_hash(source_text),
            'source_text': source_text,
            'source_lang': source_lang,
            'target_lang': target_lang,
            'translated_text': translated_text,
            'created_at': now,
            'expires_at': expires_at,
        }

        try:
            insert = _UPSERT_DIALECTS.get(db.engine.dialect.name)
            if insert is not None:
                stmt = insert(TranslationCache).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=['text_hash', 'source_lang', 'target_lang'],
                    set_={
                        'source_text': stmt.excluded.source_text,
                        'translated_text': stmt.excluded.translated_text,
                        'created_at': stmt.excluded.created_at,
                        'expires_at': stmt.excluded.expires_at,
                    },
                )
                db.session.execute(stmt)
                db.session.commit()
            else:
                self._put_portable(values)
        except SQLAlchemyError as e:
            db.session.rollback()
            raise CacheStoreError(f"cache storage error: {e}") from e

    def _put_portable(self, values):
        """Read-then-write upsert for dialects without ON CONFLICT."""
        key = {k: values[k] for k in ('text_hash', 'source_lang', 'target_lang')}
        existing = TranslationCache.query.filter_by(**key).first()
        if existing is None:
            db.session.add(TranslationCache(**values))
            try:
                db.session.commit()
                return
            except IntegrityError:
                # Concurrent insert won the race, overwrite it instead
                db.session.rollback()
                existing = TranslationCache.query.filter_by(**key).one()

        for field in ('source_text', 'translated_text', 'created_at', 'expires_at'):
            setattr(existing, field, values[field])
        db.session.commit()

    def sweep_expired(self) -> int:
        """Delete all entries whose expiry has passed. Returns rows removed."""
        try:
            removed = TranslationCache.query.filter(
                TranslationCache.expires_at < self.clock()
            ).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            raise CacheStoreError(f"cache cleanup error: {e}") from e

        logger.info(f"Removed {removed} expired translation cache entries")
        return removed
