# ABOUTME: Tests for the Financial Modeling Prep client against a mocked requests session
# ABOUTME: Covers request shape, empty results, rate-limit detection and API call logging

from unittest.mock import Mock

import pytest
import requests

from fmp_client import FMPClient, MarketDataError, RateLimitError, MARKET_INDICES


def _response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=response
        )
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def fmp(session, test_db):
    return FMPClient(api_key='secret-key', db=test_db, base_url='https://fmp.test/api/v3/',
                     timeout=3.0, session=session)


class TestRequests:
    def test_quote_request_shape(self, fmp, session):
        session.get.return_value = _response([{'symbol': 'AAPL', 'price': 190.0}])

        quote = fmp.get_quote('aapl')

        assert quote == {'symbol': 'AAPL', 'price': 190.0}
        session.get.assert_called_once_with(
            'https://fmp.test/api/v3/quote/AAPL',
            params={'apikey': 'secret-key'},
            timeout=3.0
        )

    def test_empty_list_means_no_data(self, fmp, session):
        session.get.return_value = _response([])

        assert fmp.get_quote('NOPE') is None
        assert fmp.get_profile('NOPE') is None

    def test_historical_uses_line_series(self, fmp, session):
        session.get.return_value = _response({'symbol': 'AAPL', 'historical': []})

        fmp.get_historical('AAPL')

        _, kwargs = session.get.call_args
        assert kwargs['params']['serietype'] == 'line'

    def test_historical_empty_object(self, fmp, session):
        session.get.return_value = _response({})
        assert fmp.get_historical('NOPE') is None

    def test_search_short_query_skips_call(self, fmp, session):
        assert fmp.search('a') == []
        session.get.assert_not_called()

    def test_search_params(self, fmp, session):
        session.get.return_value = _response([{'symbol': 'AAPL'}])

        fmp.search('apple')

        _, kwargs = session.get.call_args
        assert kwargs['params']['query'] == 'apple'
        assert kwargs['params']['limit'] == 10

    def test_market_summary_requests_all_indices(self, fmp, session):
        session.get.return_value = _response([])

        assert fmp.get_market_summary() == []
        url = session.get.call_args[0][0]
        assert url.endswith('/quote/' + ','.join(MARKET_INDICES))

    def test_news_limits(self, fmp, session):
        session.get.return_value = _response([])

        fmp.get_news()
        assert session.get.call_args[1]['params'] == {'apikey': 'secret-key', 'limit': 20}

        fmp.get_news('msft')
        assert session.get.call_args[1]['params'] == {'apikey': 'secret-key', 'tickers': 'MSFT', 'limit': 10}


class TestFailures:
    def test_http_429_is_rate_limit(self, fmp, session):
        session.get.return_value = _response({}, status_code=429)

        with pytest.raises(RateLimitError):
            fmp.get_quote('AAPL')

    def test_limit_marker_is_rate_limit(self, fmp, session):
        session.get.return_value = _response(
            {'Error Message': 'Limit Reach . Please upgrade your plan or visit our documentation'},
            status_code=403
        )

        with pytest.raises(RateLimitError, match='rate limit'):
            fmp.get_news()

    def test_error_message_in_ok_response(self, fmp, session):
        session.get.return_value = _response({'Error Message': 'Invalid API KEY.'})

        with pytest.raises(MarketDataError, match='Error fetching stock quote: Invalid API KEY.') as excinfo:
            fmp.get_quote('AAPL')
        assert not isinstance(excinfo.value, RateLimitError)

    def test_network_error(self, fmp, session):
        session.get.side_effect = requests.ConnectionError('connection refused')

        with pytest.raises(MarketDataError, match='company profile'):
            fmp.get_profile('AAPL')

    def test_invalid_json(self, fmp, session):
        response = _response(None)
        response.json.side_effect = ValueError('Expecting value')
        session.get.return_value = response

        with pytest.raises(MarketDataError):
            fmp.get_quote('AAPL')


class TestCallLogging:
    def test_success_is_logged(self, fmp, session, test_db):
        user = test_db.create_user('alice', 'alice@example.com', 'Alice')
        session.get.return_value = _response([{'symbol': 'AAPL'}])

        fmp.get_quote('AAPL', user_id=user['id'])

        logs = test_db.get_api_logs()
        assert len(logs) == 1
        assert logs[0]['endpoint'] == '/api/stocks/quote/AAPL'
        assert logs[0]['success'] == 1
        assert logs[0]['user_id'] == user['id']
        assert logs[0]['response_time'] >= 0

    def test_failure_is_logged(self, fmp, session, test_db):
        session.get.return_value = _response({}, status_code=500)

        with pytest.raises(MarketDataError):
            fmp.get_market_summary()

        log = test_db.get_api_logs()[0]
        assert log['success'] == 0
        assert log['error_message']

    def test_logging_failure_does_not_break_the_call(self, session):
        db = Mock()
        db.log_api_request.side_effect = RuntimeError('disk full')
        fmp = FMPClient(db=db, session=session)
        session.get.return_value = _response([{'symbol': 'AAPL'}])

        assert fmp.get_quote('AAPL') == {'symbol': 'AAPL'}

    def test_no_database_disables_logging(self, session):
        session.get.return_value = _response([{'symbol': 'AAPL'}])
        assert FMPClient(session=session).get_quote('AAPL') == {'symbol': 'AAPL'}
