# ABOUTME: Tests for the final error handler, page routes and the health check
# ABOUTME: Verifies JSON vs HTML error shapes, login redirects and status mapping of typed failures

import pytest
from cachelib import SimpleCache

from app import create_app
from database import DatabaseUnavailableError


class TestHealth:
    def test_health_check(self, client):
        response = client.get('/api/health')

        assert response.status_code == 200
        assert response.get_json() == {'status': 'healthy'}


class TestErrorEnvelope:
    def test_unknown_api_route_is_json_404(self, client):
        response = client.get('/api/does-not-exist')

        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_database_unavailable_is_503(self, auth_client, test_db, regular_user, monkeypatch):
        def unavailable(user_id):
            raise DatabaseUnavailableError('Database connection not available')

        # The session lookup succeeds, the watchlist read does not
        monkeypatch.setattr(test_db, 'get_watchlist', unavailable)

        response = auth_client.get('/api/watchlist/items')

        assert response.status_code == 503
        assert response.get_json()['message'] == 'Service temporarily unavailable'

    def test_unexpected_error_is_500_with_detail_outside_production(self, auth_client, test_db, monkeypatch):
        def explode(user_id):
            raise KeyError('boom')

        monkeypatch.setattr(test_db, 'get_user_portfolios', explode)

        data = auth_client.get('/api/portfolios').get_json()

        assert data['message'] == 'Internal server error'
        assert 'KeyError' in data['error']

    def test_production_hides_error_detail(self, test_config, test_db, mock_market, monkeypatch):
        config = dict(test_config, ENVIRONMENT='production')
        flask_app = create_app(config, db=test_db, market_client=mock_market, session_cache=SimpleCache())

        def explode(username):
            raise KeyError('boom')

        monkeypatch.setattr(test_db, 'get_user_by_username', explode)

        response = flask_app.test_client().post('/auth/login', json={'username': 'alice', 'password': 'x'})

        assert response.status_code == 500
        assert response.get_json() == {'success': False, 'message': 'Internal server error'}

    def test_invalid_json_body_type(self, auth_client):
        response = auth_client.post('/api/portfolios', json=['not', 'an', 'object'])
        assert response.status_code == 400


class TestPages:
    @pytest.mark.parametrize('path', ['/', '/dashboard', '/stock/AAPL'])
    def test_app_pages_redirect_anonymous_users(self, client, path):
        response = client.get(path)

        assert response.status_code == 302
        assert response.headers['Location'].endswith('/login')

    @pytest.mark.parametrize('path', ['/', '/dashboard', '/stock/AAPL'])
    def test_app_pages_for_logged_in_users(self, auth_client, path):
        response = auth_client.get(path)

        assert response.status_code == 200
        assert b'<html' in response.data

    @pytest.mark.parametrize('path', ['/login', '/register'])
    def test_login_pages_bounce_logged_in_users(self, auth_client, path):
        response = auth_client.get(path)

        assert response.status_code == 302
        assert response.headers['Location'].endswith('/dashboard')

    def test_login_page_for_anonymous_users(self, client):
        assert client.get('/login').status_code == 200

    def test_admin_page(self, admin_client, auth_client):
        assert admin_client.get('/admin').status_code == 200

        response = auth_client.get('/admin')
        assert response.status_code == 403
        assert b'403' in response.data

    def test_unknown_page_is_html_404(self, client):
        response = client.get('/no-such-page')

        assert response.status_code == 404
        assert response.content_type.startswith('text/html')

    def test_api_client_gets_json_for_page_errors(self, client):
        response = client.get('/dashboard', headers={'X-Requested-With': 'XMLHttpRequest'})

        assert response.status_code == 401
        assert response.get_json()['message'] == 'Authentication required'
