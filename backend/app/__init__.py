# ABOUTME: Flask application factory with middleware, session, and service initialization
# ABOUTME: Registers all route blueprints, the final error handler and request timing logs

import logging
import time
from datetime import timedelta

from cachelib import FileSystemCache
from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_session import Session
from werkzeug.middleware.proxy_fix import ProxyFix

from app import deps

logger = logging.getLogger(__name__)


def configure_logging(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    # Suppress noisy third-party library logs
    logging.getLogger('urllib3').setLevel(logging.WARNING)


def create_app(config=None, db=None, market_client=None, session_cache=None, initialize=True):
    """
    Build the Flask app.

    Args:
        config: Mapping of config keys; read from the environment when omitted
        db: Database instance; built from DATABASE_PATH when omitted
        market_client: Market-data client; an FMPClient is built when omitted
        session_cache: cachelib cache backing server-side sessions; a
            FileSystemCache in SESSION_DIR when omitted
        initialize: Create the schema and seed the admin account (with retry)
    """
    from config import load_config
    from database import Database, initialize_with_retry
    from fmp_client import FMPClient
    from auth import hash_password

    if config is None:
        config = load_config()

    configure_logging()

    app = Flask(__name__, static_folder='static', static_url_path='/static')
    app.config.update(config)

    # Trust X-Forwarded-* headers from the reverse proxy in front of gunicorn
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    is_production = app.config.get('ENVIRONMENT') == 'production'

    if session_cache is None:
        # No count cap; session files are removed only when their lifetime expires
        session_cache = FileSystemCache(app.config['SESSION_DIR'], threshold=0)
    app.config['SESSION_TYPE'] = 'cachelib'
    app.config['SESSION_CACHELIB'] = session_cache
    app.config['SESSION_PERMANENT'] = True
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=1)
    app.config['SESSION_COOKIE_SECURE'] = is_production
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SAMESITE'] = 'Lax'
    Session(app)

    # Configure CORS with credentials support
    CORS(app,
         resources={r"/api/*": {"origins": app.config.get('FRONTEND_ORIGINS') or []}},
         supports_credentials=True,
         allow_headers=["Content-Type", "Authorization"],
         methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )

    if db is None:
        db = Database(app.config['DATABASE_PATH'])
    if market_client is None:
        market_client = FMPClient(
            api_key=app.config.get('FMP_API_KEY', 'demo'),
            db=db,
            base_url=app.config.get('FMP_BASE_URL'),
            timeout=app.config.get('FMP_TIMEOUT_SECONDS', 10.0)
        )
    deps.init_services(app, db, market_client)

    if initialize:
        admin_password = app.config.get('ADMIN_PASSWORD')
        initialize_with_retry(lambda: db.setup(
            admin_username=app.config.get('ADMIN_USERNAME', 'admin'),
            admin_email=app.config.get('ADMIN_EMAIL', 'admin@stockinfo.com'),
            admin_password_hash=hash_password(admin_password) if admin_password else None
        ))

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        if request.path.startswith('/api') and 'request_started' in g:
            elapsed = int((time.perf_counter() - g.request_started) * 1000)
            logger.info(f"{request.method} {request.path} {response.status_code} - {elapsed}ms")
        return response

    # Health check route (stays in __init__)
    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'healthy'})

    from app.errors import register_error_handlers
    from app.auth import auth_bp
    from app.pages import pages_bp
    from app.stocks import stocks_bp
    from app.watchlist import watchlist_bp
    from app.portfolios import portfolios_bp
    from app.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(pages_bp)
    app.register_blueprint(stocks_bp)
    app.register_blueprint(watchlist_bp)
    app.register_blueprint(portfolios_bp)
    app.register_blueprint(admin_bp)
    register_error_handlers(app)

    return app
