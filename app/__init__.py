from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
import logging
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()

logger = logging.getLogger(__name__)


def _database_url(config_name):
    """Resolve the database URL, handling the postgres:// alias."""
    if config_name == 'testing':
        return os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')

    url = os.getenv('DATABASE_URL', 'sqlite:///translation.db')
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def create_app(config_name='development'):
    app = Flask(__name__)

    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )

    # Config
    app.config['SQLALCHEMY_DATABASE_URI'] = _database_url(config_name)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['TESTING'] = config_name == 'testing'

    app.config['BHASHINI_BASE_URL'] = os.getenv(
        'BHASHINI_BASE_URL', 'https://meity-auth.ulcacontrib.org'
    )
    app.config['BHASHINI_USER_ID'] = os.getenv('BHASHINI_USER_ID', '').strip()
    app.config['BHASHINI_API_KEY'] = os.getenv('BHASHINI_API_KEY', '').strip()
    app.config['BHASHINI_PIPELINE_ID'] = os.getenv('BHASHINI_PIPELINE_ID', '').strip()
    app.config['BHASHINI_PIPELINE_DISCOVERY'] = os.getenv('BHASHINI_PIPELINE_DISCOVERY', 'static')
    app.config['BHASHINI_TIMEOUT'] = float(os.getenv('BHASHINI_TIMEOUT', 30))
    app.config['TRANSLATION_CACHE_TTL'] = os.getenv('TRANSLATION_CACHE_TTL', '')

    # Initialize extensions
    db.init_app(app)
    CORS(app)

    # Create tables with error handling
    with app.app_context():
        from app import models  # noqa: F401  (register tables)
        try:
            db.create_all()
        except Exception as e:
            logger.warning(f"Could not create database tables: {e}")
            logger.warning("This is OK if database is not ready yet.")

    from app.services.translation import init_translation_service
    init_translation_service(app)

    # Register routes
    from app.routes import register_routes
    register_routes(app)

    from app.services.errors import TranslationError

    @app.errorhandler(TranslationError)
    def handle_translation_error(error):
        return jsonify({'status': 'error', 'error': str(error)}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'status': 'error', 'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error on {request.method} {request.path}")
        return jsonify({'status': 'error', 'error': 'internal server error'}), 500

    @app.after_request
    def log_request(response):
        logger.info(f"{request.method} {request.path} -> {response.status_code}")
        return response

    # Health check
    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok', 'service': 'translation-service'}, 200

    return app
