# ABOUTME: Portfolio management endpoints for tracking purchased positions
# ABOUTME: Handles portfolio CRUD and position CRUD, scoped to the owning user

from flask import Blueprint, jsonify
from app.deps import get_services
from app.errors import ValidationError
from app.helpers import get_json_body, normalize_symbol, parse_id, parse_number, parse_optional_text
from auth import require_user_auth
from database.core import normalize_timestamp
from database.patches import PortfolioPatch, PositionPatch
import logging

logger = logging.getLogger(__name__)

portfolios_bp = Blueprint('portfolios', __name__)


def _owned_portfolio(portfolio_id: int, user_id: int):
    """
    Load a portfolio and verify the caller owns it.

    Returns (portfolio, None) on success or (None, error_response) otherwise:
    404 when it does not exist, 403 when it belongs to someone else.
    """
    portfolio = get_services().db.get_portfolio(portfolio_id)
    if not portfolio:
        return None, (jsonify({'success': False, 'message': 'Portfolio not found'}), 404)
    if portfolio['user_id'] != user_id:
        logger.info(f"User {user_id} denied access to portfolio {portfolio_id}")
        return None, (jsonify({'success': False, 'message': 'Access denied'}), 403)
    return portfolio, None


def _portfolio_name(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('Portfolio name is required')
    return value.strip()


def _purchase_date(value):
    try:
        return normalize_timestamp(value)
    except ValueError:
        raise ValidationError('purchase_date must be an ISO-8601 date')


@portfolios_bp.route('/api/portfolios', methods=['GET'])
@require_user_auth
def list_portfolios(user_id):
    """List all portfolios for the authenticated user."""
    return jsonify(get_services().db.get_user_portfolios(user_id))


@portfolios_bp.route('/api/portfolios', methods=['POST'])
@require_user_auth
def create_portfolio(user_id):
    """Create a new portfolio."""
    data = get_json_body()
    name = _portfolio_name(data.get('name'))
    portfolio = get_services().db.create_portfolio(
        user_id, name, parse_optional_text(data.get('description'), 'Description'))
    return jsonify(portfolio), 201


@portfolios_bp.route('/api/portfolios/<portfolio_id>', methods=['GET'])
@require_user_auth
def get_portfolio(portfolio_id, user_id):
    """Get a portfolio together with its positions."""
    portfolio_id = parse_id(portfolio_id, 'portfolio ID')
    portfolio, error = _owned_portfolio(portfolio_id, user_id)
    if error:
        return error

    positions = get_services().db.get_portfolio_positions(portfolio_id)
    return jsonify({**portfolio, 'positions': positions})


@portfolios_bp.route('/api/portfolios/<portfolio_id>', methods=['PUT'])
@require_user_auth
def update_portfolio(portfolio_id, user_id):
    portfolio_id = parse_id(portfolio_id, 'portfolio ID')
    patch = PortfolioPatch.from_mapping(get_json_body())
    changes = dict(patch.changes())
    if 'name' in changes:
        patch.name = _portfolio_name(patch.name)
    if 'description' in changes:
        patch.description = parse_optional_text(patch.description, 'Description')

    portfolio, error = _owned_portfolio(portfolio_id, user_id)
    if error:
        return error

    return jsonify(get_services().db.update_portfolio(portfolio_id, patch))


@portfolios_bp.route('/api/portfolios/<portfolio_id>', methods=['DELETE'])
@require_user_auth
def delete_portfolio(portfolio_id, user_id):
    portfolio_id = parse_id(portfolio_id, 'portfolio ID')
    portfolio, error = _owned_portfolio(portfolio_id, user_id)
    if error:
        return error

    get_services().db.delete_portfolio(portfolio_id)
    logger.info(f"User {user_id} deleted portfolio {portfolio_id}")
    return jsonify({'success': True, 'message': 'Portfolio deleted successfully'})


@portfolios_bp.route('/api/portfolios/<portfolio_id>/positions', methods=['GET'])
@require_user_auth
def list_positions(portfolio_id, user_id):
    portfolio_id = parse_id(portfolio_id, 'portfolio ID')
    portfolio, error = _owned_portfolio(portfolio_id, user_id)
    if error:
        return error

    return jsonify(get_services().db.get_portfolio_positions(portfolio_id))


@portfolios_bp.route('/api/portfolios/<portfolio_id>/positions', methods=['POST'])
@require_user_auth
def add_position(portfolio_id, user_id):
    portfolio_id = parse_id(portfolio_id, 'portfolio ID')
    data = get_json_body()

    if not data.get('symbol') or data.get('shares') is None or data.get('purchase_price') is None:
        raise ValidationError('Missing required fields: symbol, shares, purchase_price')
    symbol = normalize_symbol(data['symbol'])
    shares = parse_number(data['shares'], 'shares')
    purchase_price = parse_number(data['purchase_price'], 'purchase_price')
    purchase_date = _purchase_date(data.get('purchase_date'))
    notes = parse_optional_text(data.get('notes'), 'Notes')

    portfolio, error = _owned_portfolio(portfolio_id, user_id)
    if error:
        return error

    position = get_services().db.add_position(
        portfolio_id, symbol, shares, purchase_price,
        purchase_date=purchase_date, notes=notes
    )
    return jsonify(position), 201


def _position_in_portfolio(portfolio_id: int, position_id: int):
    position = get_services().db.get_position(position_id)
    if not position:
        return None, (jsonify({'success': False, 'message': 'Position not found'}), 404)
    if position['portfolio_id'] != portfolio_id:
        return None, (jsonify({'success': False, 'message': 'Position does not belong to this portfolio'}), 400)
    return position, None


@portfolios_bp.route('/api/portfolios/<portfolio_id>/positions/<position_id>', methods=['PUT'])
@require_user_auth
def update_position(portfolio_id, position_id, user_id):
    portfolio_id = parse_id(portfolio_id, 'portfolio ID')
    position_id = parse_id(position_id, 'position ID')

    patch = PositionPatch.from_mapping(get_json_body())
    changes = dict(patch.changes())
    if 'shares' in changes:
        patch.shares = parse_number(patch.shares, 'shares')
    if 'purchase_price' in changes:
        patch.purchase_price = parse_number(patch.purchase_price, 'purchase_price')
    if 'purchase_date' in changes:
        patch.purchase_date = _purchase_date(patch.purchase_date)
    if 'notes' in changes:
        patch.notes = parse_optional_text(patch.notes, 'Notes')

    portfolio, error = _owned_portfolio(portfolio_id, user_id)
    if error:
        return error
    position, error = _position_in_portfolio(portfolio_id, position_id)
    if error:
        return error

    return jsonify(get_services().db.update_position(position_id, patch))


@portfolios_bp.route('/api/portfolios/<portfolio_id>/positions/<position_id>', methods=['DELETE'])
@require_user_auth
def delete_position(portfolio_id, position_id, user_id):
    portfolio_id = parse_id(portfolio_id, 'portfolio ID')
    position_id = parse_id(position_id, 'position ID')

    portfolio, error = _owned_portfolio(portfolio_id, user_id)
    if error:
        return error
    position, error = _position_in_portfolio(portfolio_id, position_id)
    if error:
        return error

    get_services().db.delete_position(position_id)
    return jsonify({'success': True, 'message': 'Position deleted successfully'})
