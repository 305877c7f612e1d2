# ABOUTME: Tests for process-level app wiring: the default session store and signal-driven shutdown
# ABOUTME: Signal handlers installed by a test are restored afterwards

import signal

import pytest
from cachelib import FileSystemCache

from app import create_app
from app.__main__ import install_shutdown_handlers


@pytest.fixture
def restore_signal_handlers():
    saved = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}
    yield
    for signum, handler in saved.items():
        signal.signal(signum, handler)


class TestSessionStore:
    def test_default_store_is_uncapped_filesystem_cache(self, test_config, test_db, mock_market):
        """Sessions live until they expire; the store never prunes by file count"""
        flask_app = create_app(test_config, db=test_db, market_client=mock_market)

        cache = flask_app.config['SESSION_CACHELIB']
        assert isinstance(cache, FileSystemCache)
        assert cache._threshold == 0

    def test_session_survives_on_filesystem_store(self, test_config, test_db, mock_market, regular_user):
        flask_app = create_app(test_config, db=test_db, market_client=mock_market)
        client = flask_app.test_client()

        login = client.post('/auth/login', json={'username': 'alice', 'password': 'password123'})
        assert login.status_code == 200

        assert client.get('/auth/user').get_json()['user']['username'] == 'alice'


class TestShutdown:
    @pytest.mark.parametrize('signum', [signal.SIGTERM, signal.SIGINT])
    def test_signal_closes_database(self, test_db, restore_signal_handlers, signum):
        test_db.get_one('SELECT 1')
        assert test_db.is_connected is True

        install_shutdown_handlers(test_db)
        handler = signal.getsignal(signum)

        with pytest.raises(SystemExit) as excinfo:
            handler(signum, None)

        assert excinfo.value.code == 0
        assert test_db.is_connected is False
