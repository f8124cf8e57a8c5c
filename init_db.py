#!/usr/bin/env python
"""Create the translation cache table and fail loudly if the database is unreachable.

``create_app`` also attempts this on boot but only logs a warning on failure.

Usage:
    python init_db.py
"""

import os
import sys

from app import create_app, db


def init_database():
    app = create_app(os.getenv('FLASK_ENV', 'development'))
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            print(f"❌ Could not create tables: {e}")
            return False
    print("✅ translation_cache table is ready")
    return True


if __name__ == '__main__':
    sys.exit(0 if init_database() else 1)
