"""Translation cache model for storing translated content."""
from app import db


class TranslationCache(db.Model):
    """Cache translations to avoid re-invoking the remote pipeline.

    One live row per (source text, source language, target language). The
    text itself is keyed through ``text_hash`` so the unique index stays small
    for long inputs.
    """
    __tablename__ = 'translation_cache'

    id = db.Column(db.Integer, primary_key=True)
    text_hash = db.Column(db.String(64), nullable=False)
    source_text = db.Column(db.Text, nullable=False)
    source_lang = db.Column(db.String(5), nullable=False)
    target_lang = db.Column(db.String(5), nullable=False)
    translated_text = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    __table_args__ = (
        db.UniqueConstraint('text_hash', 'source_lang', 'target_lang', name='unique_translation'),
    )

    def __repr__(self):
        return f'<TranslationCache {self.id} {self.source_lang}->{self.target_lang}>'
