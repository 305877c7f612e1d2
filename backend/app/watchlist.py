# ABOUTME: Watchlist management endpoints for users
# ABOUTME: Handles listing with live quotes, adding (quote and restriction checked), removing, and membership checks

from flask import Blueprint, jsonify
from app.deps import get_services
from app.helpers import get_json_body, normalize_symbol
from auth import require_user_auth
from fmp_client import MarketDataError
import logging

logger = logging.getLogger(__name__)

watchlist_bp = Blueprint('watchlist', __name__)


def _with_quote(item, market, user_id):
    try:
        quote = market.get_quote(item['symbol'], user_id=user_id)
    except MarketDataError as e:
        logger.warning(f"Quote lookup failed for watchlist symbol {item['symbol']}: {e}")
        return item
    if not quote:
        return item
    return {
        **item,
        'price': quote.get('price'),
        'name': quote.get('name'),
        'change': quote.get('change'),
        'changesPercentage': quote.get('changesPercentage'),
    }


@watchlist_bp.route('/api/watchlist/items', methods=['GET'])
@require_user_auth
def get_watchlist(user_id):
    services = get_services()
    items = services.db.get_watchlist(user_id)
    return jsonify([_with_quote(item, services.market, user_id) for item in items])


@watchlist_bp.route('/api/watchlist/items', methods=['POST'])
@require_user_auth
def add_to_watchlist(user_id):
    symbol = normalize_symbol(get_json_body().get('symbol'))
    services = get_services()

    quote = services.market.get_quote(symbol, user_id=user_id)
    if not quote:
        return jsonify({'success': False, 'message': f"Invalid stock symbol: {symbol}"}), 404

    if services.db.is_stock_restricted(symbol):
        logger.info(f"User {user_id} tried to watch restricted stock {symbol}")
        return jsonify({'success': False, 'message': f"Stock {symbol} is restricted and cannot be added"}), 403

    item = services.db.add_to_watchlist(user_id, symbol)
    return jsonify({
        **item,
        'price': quote.get('price'),
        'name': quote.get('name'),
        'change': quote.get('change'),
    }), 201


@watchlist_bp.route('/api/watchlist/items/<symbol>', methods=['DELETE'])
@require_user_auth
def remove_from_watchlist(symbol, user_id):
    symbol = normalize_symbol(symbol)
    if not get_services().db.remove_from_watchlist(user_id, symbol):
        return jsonify({'success': False, 'message': f"Stock {symbol} is not in watchlist"}), 404
    return jsonify({'success': True, 'message': f"Stock {symbol} removed from watchlist"})


@watchlist_bp.route('/api/watchlist/check/<symbol>', methods=['GET'])
@require_user_auth
def check_watchlist(symbol, user_id):
    symbol = normalize_symbol(symbol)
    return jsonify({'symbol': symbol, 'isInWatchlist': get_services().db.is_in_watchlist(user_id, symbol)})
