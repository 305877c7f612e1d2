# ABOUTME: Market-data passthrough endpoints: quote, profile, history, search, market summary, news
# ABOUTME: Missing upstream data becomes 404; rate-limit and upstream failures go to the error handler

from flask import Blueprint, jsonify, request

from app.deps import get_services
from app.errors import ValidationError
from app.helpers import normalize_symbol
from auth import require_user_auth

stocks_bp = Blueprint('stocks', __name__)


def _not_found(message: str):
    return jsonify({'success': False, 'message': message}), 404


@stocks_bp.route('/api/stocks/quote/<symbol>', methods=['GET'])
@require_user_auth
def get_quote(symbol, user_id):
    symbol = normalize_symbol(symbol)
    quote = get_services().market.get_quote(symbol, user_id=user_id)
    if not quote:
        return _not_found(f"No quote data found for symbol: {symbol}")
    return jsonify(quote)


@stocks_bp.route('/api/stocks/profile/<symbol>', methods=['GET'])
@require_user_auth
def get_profile(symbol, user_id):
    symbol = normalize_symbol(symbol)
    profile = get_services().market.get_profile(symbol, user_id=user_id)
    if not profile:
        return _not_found(f"No company profile found for symbol: {symbol}")
    return jsonify(profile)


@stocks_bp.route('/api/stocks/historical/<symbol>', methods=['GET'])
@require_user_auth
def get_historical(symbol, user_id):
    symbol = normalize_symbol(symbol)
    history = get_services().market.get_historical(symbol, user_id=user_id)
    if not history:
        return _not_found(f"No historical data found for symbol: {symbol}")
    return jsonify(history)


@stocks_bp.route('/api/stocks/search', methods=['GET'])
@require_user_auth
def search_stocks(user_id):
    query = (request.args.get('query') or '').strip()
    if len(query) < 2:
        raise ValidationError('Search query must be at least 2 characters long')
    return jsonify(get_services().market.search(query, user_id=user_id))


@stocks_bp.route('/api/stocks/market-summary', methods=['GET'])
@require_user_auth
def get_market_summary(user_id):
    return jsonify(get_services().market.get_market_summary(user_id=user_id))


@stocks_bp.route('/api/stocks/news', methods=['GET'])
@stocks_bp.route('/api/stocks/news/<symbol>', methods=['GET'])
@require_user_auth
def get_news(user_id, symbol=None):
    if symbol is not None:
        symbol = normalize_symbol(symbol)
    return jsonify(get_services().market.get_news(symbol, user_id=user_id))


@stocks_bp.route('/api/stocks/featured', methods=['GET'])
@require_user_auth
def get_featured(user_id):
    """Currently featured stocks, for the dashboard"""
    return jsonify(get_services().db.get_featured_stocks())
