#!/usr/bin/env python3
"""Script to delete expired translation cache entries.

Meant to run from cron alongside the POST /cache/clean endpoint.
"""

import sys
import os

# Add parent directory to path to import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from app.services.errors import CacheStoreError
from app.services.translation import get_translation_service


def clean_translation_cache() -> int:
    """Sweep expired entries.

    Returns:
        Number of entries removed
    """
    removed = get_translation_service().clean_expired_cache()
    print(f"✅ Removed {removed} expired translation cache entries")
    return removed


if __name__ == '__main__':
    app = create_app(os.getenv('FLASK_ENV', 'development'))
    with app.app_context():
        try:
            clean_translation_cache()
        except CacheStoreError as e:
            print(f"❌ {e}")
            sys.exit(1)
