"""
Pytest fixtures for backend unit and integration tests.
"""

import sys
import os
from unittest.mock import Mock

import pytest
from cachelib import SimpleCache

# Add backend directory to Python path for imports
backend_path = os.path.join(os.path.dirname(__file__), '..', '..', 'backend')
sys.path.insert(0, os.path.abspath(backend_path))

from app import create_app  # noqa: E402
from auth import hash_password  # noqa: E402
from fmp_client import FMPClient  # noqa: E402

USER_PASSWORD = 'password123'
ADMIN_PASSWORD = 'adminpass123'

QUOTES = {
    'AAPL': {'symbol': 'AAPL', 'name': 'Apple Inc.', 'price': 189.5, 'change': 1.25, 'changesPercentage': 0.66},
    'AMZN': {'symbol': 'AMZN', 'name': 'Amazon.com, Inc.', 'price': 178.2, 'change': -0.8, 'changesPercentage': -0.45},
    'MSFT': {'symbol': 'MSFT', 'name': 'Microsoft Corporation', 'price': 415.1, 'change': 2.3, 'changesPercentage': 0.56},
    'XYZ': {'symbol': 'XYZ', 'name': 'Block, Inc.', 'price': 64.0, 'change': 0.1, 'changesPercentage': 0.16},
}


@pytest.fixture
def test_config(tmp_path):
    """Explicit app config; tests never read the process environment."""
    return {
        'TESTING': True,
        'ENVIRONMENT': 'testing',
        'SECRET_KEY': 'test-secret-key',
        'FMP_API_KEY': 'test-key',
        'FMP_BASE_URL': 'https://fmp.test/api/v3',
        'FMP_TIMEOUT_SECONDS': 5.0,
        'GOOGLE_CLIENT_ID': None,
        'GOOGLE_CLIENT_SECRET': None,
        'GOOGLE_CALLBACK_URL': 'http://localhost:5000/auth/google/callback',
        'DATABASE_PATH': str(tmp_path / 'stockinfo_test.db'),
        'SESSION_DIR': str(tmp_path / 'sessions'),
        'FRONTEND_ORIGINS': [],
        'ADMIN_USERNAME': 'admin',
        'ADMIN_EMAIL': 'admin@stockinfo.com',
        'ADMIN_PASSWORD': None,
        'PORT': 5000,
    }


@pytest.fixture
def mock_market():
    """Market-data client double; known symbols have quotes, anything else has no data."""
    market = Mock(spec=FMPClient)
    market.get_quote.side_effect = lambda symbol, user_id=None: QUOTES.get(symbol.upper())
    market.get_profile.return_value = {'symbol': 'AAPL', 'companyName': 'Apple Inc.', 'sector': 'Technology'}
    market.get_historical.return_value = {'symbol': 'AAPL', 'historical': [{'date': '2024-01-02', 'close': 185.64}]}
    market.search.return_value = [{'symbol': 'AAPL', 'name': 'Apple Inc.'}]
    market.get_market_summary.return_value = [{'symbol': '^GSPC', 'price': 5100.0}]
    market.get_news.return_value = [{'title': 'Markets rally', 'symbol': 'AAPL'}]
    return market


@pytest.fixture
def flask_app(test_config, test_db, mock_market):
    return create_app(test_config, db=test_db, market_client=mock_market, session_cache=SimpleCache())


@pytest.fixture
def client(flask_app):
    with flask_app.test_client() as client:
        yield client


@pytest.fixture
def regular_user(test_db):
    return test_db.create_user('alice', 'alice@example.com', 'Alice Example',
                               password_hash=hash_password(USER_PASSWORD))


@pytest.fixture
def other_user(test_db):
    return test_db.create_user('bob', 'bob@example.com', 'Bob Example',
                               password_hash=hash_password(USER_PASSWORD))


@pytest.fixture
def admin_user(test_db):
    return test_db.create_user('root', 'root@example.com', 'Root Admin',
                               password_hash=hash_password(ADMIN_PASSWORD), role='admin')


def _logged_in_client(flask_app, user):
    client = flask_app.test_client()
    with client.session_transaction() as sess:
        sess['user_id'] = user['id']
    return client


@pytest.fixture
def auth_client(flask_app, regular_user):
    """Test client with a session for the regular user."""
    return _logged_in_client(flask_app, regular_user)


@pytest.fixture
def other_client(flask_app, other_user):
    return _logged_in_client(flask_app, other_user)


@pytest.fixture
def admin_client(flask_app, admin_user):
    """Test client with a session for an admin."""
    return _logged_in_client(flask_app, admin_user)
