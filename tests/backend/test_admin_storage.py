# ABOUTME: Tests for admin-managed storage: settings, restricted/featured stocks and API logs
# ABOUTME: Validates upserts, uniqueness, featured-stock windows and log filtering

import pytest

from database import AlreadyExistsError
from database.patches import FeaturedStockPatch


@pytest.fixture
def admin_id(test_db):
    return test_db.create_user('root', 'root@example.com', 'Root', password_hash='x', role='admin')['id']


class TestSettings:
    def test_save_and_read_json_values(self, test_db, admin_id):
        test_db.save_app_setting('maintenance', True, 'Maintenance mode', updated_by=admin_id)
        test_db.save_app_setting('limits', {'watchlist': 50})

        assert test_db.get_setting('maintenance') is True
        assert test_db.get_setting('limits') == {'watchlist': 50}
        assert test_db.get_setting('missing', default='fallback') == 'fallback'

    def test_upsert_by_key(self, test_db, admin_id):
        test_db.save_app_setting('theme', 'light', 'UI theme', updated_by=admin_id)
        saved = test_db.save_app_setting('theme', 'dark', updated_by=admin_id)

        assert saved['setting_value'] == 'dark'
        assert saved['description'] == 'UI theme'
        assert saved['updated_by'] == admin_id
        assert len(test_db.get_app_settings()) == 1


class TestRestrictedStocks:
    def test_add_normalizes_symbol(self, test_db, admin_id):
        restricted = test_db.add_restricted_stock('xyz', 'Compliance', added_by=admin_id)

        assert restricted['symbol'] == 'XYZ'
        assert restricted['reason'] == 'Compliance'
        assert test_db.is_stock_restricted('xyz')
        assert not test_db.is_stock_restricted('AAPL')

    def test_duplicate(self, test_db):
        test_db.add_restricted_stock('XYZ')
        with pytest.raises(AlreadyExistsError, match='already restricted'):
            test_db.add_restricted_stock('xyz')

    def test_remove(self, test_db):
        restricted = test_db.add_restricted_stock('XYZ')
        assert test_db.remove_restricted_stock(restricted['id']) is True
        assert test_db.get_restricted_stocks() == []
        assert test_db.remove_restricted_stock(restricted['id']) is False


class TestFeaturedStocks:
    def test_active_window(self, test_db):
        test_db.add_featured_stock('AAPL', 'Open-ended')
        test_db.add_featured_stock('MSFT', 'Future end', end_date='2999-01-01')
        test_db.add_featured_stock('IBM', 'Expired', start_date='2000-01-01', end_date='2000-02-01')

        active = {row['symbol'] for row in test_db.get_featured_stocks()}
        assert active == {'AAPL', 'MSFT'}

        everything = {row['symbol'] for row in test_db.get_featured_stocks(include_expired=True)}
        assert everything == {'AAPL', 'MSFT', 'IBM'}

    def test_dates_are_normalized(self, test_db):
        featured = test_db.add_featured_stock('aapl', 'Pick', start_date='2024-05-01T09:30:00Z',
                                              end_date='2024-06-01')
        assert featured['symbol'] == 'AAPL'
        assert featured['start_date'] == '2024-05-01 09:30:00'
        assert featured['end_date'] == '2024-06-01 00:00:00'

    def test_partial_update(self, test_db):
        featured = test_db.add_featured_stock('AAPL', 'Pick', description='Keep')
        updated = test_db.update_featured_stock(featured['id'], FeaturedStockPatch(title='Top pick', symbol='msft'))

        assert updated['title'] == 'Top pick'
        assert updated['symbol'] == 'MSFT'
        assert updated['description'] == 'Keep'

    def test_clear_end_date(self, test_db):
        featured = test_db.add_featured_stock('AAPL', 'Pick', end_date='2000-01-01')
        updated = test_db.update_featured_stock(featured['id'], FeaturedStockPatch(end_date=None))
        assert updated['end_date'] is None

    def test_update_rejects_blank_date(self, test_db):
        featured = test_db.add_featured_stock('AAPL', 'Pick', end_date='2999-01-01')

        with pytest.raises(ValueError):
            test_db.update_featured_stock(featured['id'], FeaturedStockPatch(end_date=''))
        assert test_db.get_featured_stock(featured['id']) == featured

    def test_update_normalizes_dates(self, test_db):
        featured = test_db.add_featured_stock('AAPL', 'Pick')
        updated = test_db.update_featured_stock(
            featured['id'], FeaturedStockPatch(start_date='2024-05-01T11:30:00+02:00', end_date='2024-06-01')
        )

        assert updated['start_date'] == '2024-05-01 09:30:00'
        assert updated['end_date'] == '2024-06-01 00:00:00'

    def test_remove(self, test_db):
        featured = test_db.add_featured_stock('AAPL', 'Pick')
        assert test_db.remove_featured_stock(featured['id']) is True
        assert test_db.get_featured_stock(featured['id']) is None


class TestApiLogs:
    def test_log_and_read_newest_first(self, test_db, admin_id):
        test_db.log_api_request('/api/stocks/quote/AAPL', 120, True, user_id=admin_id,
                                request_time='2024-01-01 10:00:00')
        test_db.log_api_request('/api/stocks/quote/BAD', 80, False, error_message='boom',
                                request_time='2024-01-01 11:00:00')

        logs = test_db.get_api_logs()
        assert [log['endpoint'] for log in logs] == ['/api/stocks/quote/BAD', '/api/stocks/quote/AAPL']
        assert logs[0]['success'] == 0
        assert logs[0]['error_message'] == 'boom'
        assert logs[1]['success'] == 1

    def test_filter_by_user_and_limit(self, test_db, admin_id):
        for i in range(5):
            test_db.log_api_request(f"/api/news?{i}", 10, True, user_id=admin_id)
        test_db.log_api_request('/api/news', 10, True)

        assert len(test_db.get_api_logs(user_id=admin_id)) == 5
        assert len(test_db.get_api_logs(limit=2)) == 2
