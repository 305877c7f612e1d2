# ABOUTME: Financial Modeling Prep API client for quotes, profiles, history, search, market summary and news
# ABOUTME: Times every call, records it in the API log, and normalizes rate-limit failures

import logging
import time
from typing import List, Dict, Any, Optional
from urllib.parse import quote as url_quote

import requests

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKER = 'Limit Reach'
MARKET_INDICES = ['^GSPC', '^DJI', '^IXIC', '^RUT', '^VIX']


class MarketDataError(Exception):
    """An upstream market-data call failed"""


class RateLimitError(MarketDataError):
    """The provider refused the call because the API key's rate limit was reached"""

    def __init__(self, message: str = 'API rate limit reached. Please try again later.'):
        super().__init__(message)


class FMPClient:
    """Client for the Financial Modeling Prep v3 REST API"""

    BASE_URL = "https://financialmodelingprep.com/api/v3"

    def __init__(self, api_key: str = 'demo', db=None, base_url: str = None,
                 timeout: float = 10.0, session: requests.Session = None):
        """
        Initialize FMP client

        Args:
            api_key: FMP API key ('demo' works for a handful of symbols)
            db: Database used to record each call; None disables call logging
            base_url: Override for the API root
            timeout: Seconds to wait for the provider before failing the call
            session: Pre-built requests.Session (tests inject a mock)
        """
        self.api_key = api_key
        self.db = db
        self.base_url = (base_url or self.BASE_URL).rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _log_call(self, endpoint: str, success: bool, response_time: int,
                  error_message: str = None, user_id: int = None):
        if self.db is None:
            return
        try:
            self.db.log_api_request(endpoint, response_time, success,
                                    error_message=error_message, user_id=user_id)
        except Exception as e:
            logger.warning(f"Failed to log API request for {endpoint}: {e}")

    def _error_message(self, error: requests.RequestException) -> str:
        response = getattr(error, 'response', None)
        if response is not None:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message = body.get('Error Message') or body.get('error')
                if message:
                    return str(message)
        return str(error)

    def _get(self, path: str, log_endpoint: str, description: str,
             params: Dict[str, Any] = None, user_id: int = None) -> Any:
        """
        Issue one GET against the provider and record it.

        Raises RateLimitError on HTTP 429 or a rate-limit marker in the error,
        MarketDataError for any other failure.
        """
        query = {'apikey': self.api_key}
        if params:
            query.update(params)

        start = time.perf_counter()
        try:
            response = self.session.get(f"{self.base_url}{path}", params=query, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            if isinstance(data, dict) and 'Error Message' in data:
                raise requests.HTTPError(data['Error Message'], response=response)
        except (requests.RequestException, ValueError) as e:
            elapsed = int((time.perf_counter() - start) * 1000)
            message = self._error_message(e) if isinstance(e, requests.RequestException) else str(e)
            self._log_call(log_endpoint, False, elapsed, message, user_id)
            logger.error(f"[FMP] {log_endpoint} failed after {elapsed}ms: {message}")

            status = getattr(getattr(e, 'response', None), 'status_code', None)
            if status == 429 or RATE_LIMIT_MARKER in message:
                raise RateLimitError() from e
            raise MarketDataError(f"Error fetching {description}: {message}") from e

        elapsed = int((time.perf_counter() - start) * 1000)
        self._log_call(log_endpoint, True, elapsed, user_id=user_id)
        logger.info(f"[FMP] {log_endpoint} ok in {elapsed}ms")
        return data

    @staticmethod
    def _first(data: Any) -> Optional[Dict[str, Any]]:
        if isinstance(data, list):
            return data[0] if data else None
        return data or None

    def get_quote(self, symbol: str, user_id: int = None) -> Optional[Dict[str, Any]]:
        """Latest quote for a symbol, or None when the provider has no data"""
        if not symbol:
            return None
        symbol = symbol.upper()
        data = self._get(f"/quote/{url_quote(symbol)}", f"/api/stocks/quote/{symbol}",
                         'stock quote', user_id=user_id)
        return self._first(data)

    def get_profile(self, symbol: str, user_id: int = None) -> Optional[Dict[str, Any]]:
        if not symbol:
            return None
        symbol = symbol.upper()
        data = self._get(f"/profile/{url_quote(symbol)}", f"/api/stocks/profile/{symbol}",
                         'company profile', user_id=user_id)
        return self._first(data)

    def get_historical(self, symbol: str, user_id: int = None) -> Optional[Dict[str, Any]]:
        """Daily closing price series: {'symbol': ..., 'historical': [{'date', 'close'}, ...]}"""
        if not symbol:
            return None
        symbol = symbol.upper()
        data = self._get(f"/historical-price-full/{url_quote(symbol)}", f"/api/stocks/historical/{symbol}",
                         'historical data', params={'serietype': 'line'}, user_id=user_id)
        return data or None

    def search(self, query: str, user_id: int = None, limit: int = 10) -> List[Dict[str, Any]]:
        if not query or len(query) < 2:
            return []
        data = self._get('/search', f"/api/stocks/search?query={query}", 'stock search',
                         params={'query': query, 'limit': limit}, user_id=user_id)
        return data or []

    def get_market_summary(self, user_id: int = None) -> List[Dict[str, Any]]:
        """Quotes for the major US indices"""
        data = self._get(f"/quote/{','.join(MARKET_INDICES)}", '/api/stocks/market-summary',
                         'market summary', user_id=user_id)
        return data or []

    def get_news(self, symbol: str = None, user_id: int = None) -> List[Dict[str, Any]]:
        """Financial news, optionally limited to one ticker"""
        if symbol:
            symbol = symbol.upper()
            params = {'tickers': symbol, 'limit': 10}
            log_endpoint = f"/api/news?symbol={symbol}"
        else:
            params = {'limit': 20}
            log_endpoint = '/api/news'
        data = self._get('/stock_news', log_endpoint, 'financial news', params=params, user_id=user_id)
        return data or []
