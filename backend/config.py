# ABOUTME: Environment-driven configuration read once at process start
# ABOUTME: Produces the mapping handed to create_app(); .env files are loaded first when present

import os
import logging
from pathlib import Path
from typing import Dict, Any

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_SESSION_SECRET = 'dev-secret-key-change-in-production'
DEFAULT_FMP_BASE_URL = 'https://financialmodelingprep.com/api/v3'
DEFAULT_DEV_ADMIN_PASSWORD = 'admin123'

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class ConfigError(RuntimeError):
    """Raised when the environment cannot produce a runnable configuration"""


def _split_origins(value: str):
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def load_config(env: Dict[str, str] = None) -> Dict[str, Any]:
    """Build the application config from the process environment (or `env` when given)"""
    if env is None:
        load_dotenv(PROJECT_ROOT / '.env')
        load_dotenv()  # Also try the current directory
        env = os.environ

    environment = env.get('ENVIRONMENT', 'development')
    is_production = environment == 'production'

    session_secret = env.get('SESSION_SECRET', DEFAULT_SESSION_SECRET)
    if is_production and session_secret == DEFAULT_SESSION_SECRET:
        raise ConfigError('SESSION_SECRET must be set in production')

    admin_password = env.get('ADMIN_PASSWORD')
    if not admin_password and not is_production:
        admin_password = DEFAULT_DEV_ADMIN_PASSWORD

    return {
        'ENVIRONMENT': environment,
        'SECRET_KEY': session_secret,
        'FMP_API_KEY': env.get('FMP_API_KEY', 'demo'),
        'FMP_BASE_URL': env.get('FMP_BASE_URL', DEFAULT_FMP_BASE_URL),
        'FMP_TIMEOUT_SECONDS': float(env.get('FMP_TIMEOUT_SECONDS', '10')),
        'GOOGLE_CLIENT_ID': env.get('GOOGLE_CLIENT_ID'),
        'GOOGLE_CLIENT_SECRET': env.get('GOOGLE_CLIENT_SECRET'),
        'GOOGLE_CALLBACK_URL': env.get('GOOGLE_CALLBACK_URL', 'http://localhost:5000/auth/google/callback'),
        'DATABASE_PATH': env.get('DATABASE_PATH', str(PROJECT_ROOT / 'data' / 'stockinfo.db')),
        'SESSION_DIR': env.get('SESSION_DIR', str(PROJECT_ROOT / 'sessions')),
        'FRONTEND_ORIGINS': _split_origins(env.get('FRONTEND_ORIGINS', 'http://localhost:5000')),
        'ADMIN_USERNAME': env.get('ADMIN_USERNAME', 'admin'),
        'ADMIN_EMAIL': env.get('ADMIN_EMAIL', 'admin@stockinfo.com'),
        'ADMIN_PASSWORD': admin_password,
        'PORT': int(env.get('PORT', '5000')),
    }
