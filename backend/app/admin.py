# ABOUTME: Admin-only endpoints: user management, app settings, restricted/featured stocks and API logs
# ABOUTME: Every route requires the admin role; an admin can never delete their own account

from flask import Blueprint, jsonify, request
from app.deps import get_services
from app.errors import ValidationError
from app.helpers import get_json_body, normalize_symbol, parse_email, parse_id, parse_optional_text
from auth import MIN_PASSWORD_LENGTH, Role, hash_password, require_role, strip_sensitive
from database.patches import FeaturedStockPatch, UserPatch
import logging

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)

require_admin = require_role(Role.ADMIN)

USER_FIELD_ALIASES = {'fullName': 'full_name', 'darkMode': 'dark_mode'}
EDITABLE_USER_FIELDS = {'username', 'email', 'full_name', 'role', 'avatar', 'address', 'dark_mode'}

DEFAULT_LOG_LIMIT = 100
MAX_LOG_LIMIT = 1000

INVALID_DATE_MESSAGE = 'start_date and end_date must be ISO-8601 dates'


def _validate_role(value) -> str:
    try:
        return Role(value).value
    except ValueError:
        raise ValidationError(f"Invalid role: {value}. Must be one of: {', '.join(r.value for r in Role)}")


def _validate_password(value) -> str:
    if not isinstance(value, str) or len(value) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return value


def _not_found(message: str):
    return jsonify({'success': False, 'message': message}), 404


def _optional_text_fields(patch, changes: dict, *names: str):
    for name in names:
        if name in changes:
            setattr(patch, name, parse_optional_text(changes[name], name.capitalize()))


# Users

@admin_bp.route('/api/admin/users', methods=['GET'])
@require_admin
def list_users(user_id):
    return jsonify(get_services().db.get_all_users())


@admin_bp.route('/api/admin/users', methods=['POST'])
@require_admin
def create_user(user_id):
    data = get_json_body()
    data = {USER_FIELD_ALIASES.get(key, key): value for key, value in data.items()}

    required = ('username', 'password', 'email', 'full_name')
    if any(not data.get(name) for name in required):
        raise ValidationError('Missing required fields: username, password, email, full_name')

    username = parse_optional_text(data['username'], 'Username', nullable=False).strip()
    email = parse_email(data['email'])
    full_name = parse_optional_text(data['full_name'], 'Full name', nullable=False).strip()
    password = _validate_password(data['password'])
    role = _validate_role(data.get('role') or Role.USER.value)

    user = get_services().db.create_user(
        username, email, full_name,
        password_hash=hash_password(password),
        role=role,
        avatar=parse_optional_text(data.get('avatar'), 'Avatar'),
        address=parse_optional_text(data.get('address'), 'Address'),
        dark_mode=bool(data.get('dark_mode')),
    )
    logger.info(f"Admin {user_id} created user {user['id']} ({user['username']})")
    return jsonify(strip_sensitive(user)), 201


@admin_bp.route('/api/admin/users/<target_id>', methods=['GET'])
@require_admin
def get_user(target_id, user_id):
    target_id = parse_id(target_id, 'user ID')
    user = get_services().db.get_user(target_id)
    if not user:
        return _not_found('User not found')
    return jsonify(strip_sensitive(user))


@admin_bp.route('/api/admin/users/<target_id>', methods=['PUT'])
@require_admin
def update_user(target_id, user_id):
    target_id = parse_id(target_id, 'user ID')
    data = get_json_body()

    editable = {key: value for key, value in data.items()
                if USER_FIELD_ALIASES.get(key, key) in EDITABLE_USER_FIELDS}
    patch = UserPatch.from_mapping(editable, aliases=USER_FIELD_ALIASES)
    changes = dict(patch.changes())
    if 'username' in changes:
        patch.username = parse_optional_text(patch.username, 'Username', nullable=False).strip()
    if 'email' in changes:
        patch.email = parse_email(patch.email)
    if 'full_name' in changes:
        patch.full_name = parse_optional_text(patch.full_name, 'Full name', nullable=False).strip()
    _optional_text_fields(patch, changes, 'avatar', 'address')
    if 'role' in changes:
        patch.role = _validate_role(patch.role)
    if 'dark_mode' in changes:
        patch.dark_mode = bool(patch.dark_mode)
    if data.get('password'):
        patch.password_hash = hash_password(_validate_password(data['password']))

    db = get_services().db
    if not db.get_user(target_id):
        return _not_found('User not found')

    return jsonify(strip_sensitive(db.update_user(target_id, patch)))


@admin_bp.route('/api/admin/users/<target_id>', methods=['DELETE'])
@require_admin
def delete_user(target_id, user_id):
    target_id = parse_id(target_id, 'user ID')
    if target_id == user_id:
        raise ValidationError('Cannot delete your own account')

    if not get_services().db.delete_user(target_id):
        return _not_found('User not found')

    logger.info(f"Admin {user_id} deleted user {target_id}")
    return jsonify({'success': True, 'message': 'User deleted successfully'})


# Settings

@admin_bp.route('/api/admin/settings', methods=['GET'])
@require_admin
def list_settings(user_id):
    return jsonify(get_services().db.get_app_settings())


@admin_bp.route('/api/admin/settings', methods=['POST'])
@require_admin
def save_setting(user_id):
    data = get_json_body()
    key = data.get('setting_key')
    if not isinstance(key, str) or not key.strip() or 'setting_value' not in data:
        raise ValidationError('Missing required fields: setting_key, setting_value')

    setting = get_services().db.save_app_setting(
        key.strip(), data['setting_value'],
        description=parse_optional_text(data.get('description'), 'Description'),
        updated_by=user_id
    )
    return jsonify(setting)


# Restricted stocks

@admin_bp.route('/api/admin/restricted-stocks', methods=['GET'])
@require_admin
def list_restricted_stocks(user_id):
    return jsonify(get_services().db.get_restricted_stocks())


@admin_bp.route('/api/admin/restricted-stocks', methods=['POST'])
@require_admin
def add_restricted_stock(user_id):
    data = get_json_body()
    if not data.get('symbol'):
        raise ValidationError('Missing required field: symbol')
    symbol = normalize_symbol(data['symbol'])

    restricted = get_services().db.add_restricted_stock(
        symbol, parse_optional_text(data.get('reason'), 'Reason'), added_by=user_id)
    return jsonify(restricted), 201


@admin_bp.route('/api/admin/restricted-stocks/<restricted_id>', methods=['DELETE'])
@require_admin
def remove_restricted_stock(restricted_id, user_id):
    restricted_id = parse_id(restricted_id, 'restricted stock ID')
    if not get_services().db.remove_restricted_stock(restricted_id):
        return _not_found('Restricted stock not found')
    return jsonify({'success': True, 'message': 'Restricted stock removed successfully'})


# Featured stocks

@admin_bp.route('/api/admin/featured-stocks', methods=['GET'])
@require_admin
def list_featured_stocks(user_id):
    include_expired = request.args.get('all', '').lower() in ('1', 'true', 'yes')
    return jsonify(get_services().db.get_featured_stocks(include_expired=include_expired))


@admin_bp.route('/api/admin/featured-stocks', methods=['POST'])
@require_admin
def add_featured_stock(user_id):
    data = get_json_body()
    title = data.get('title')
    if not data.get('symbol') or not isinstance(title, str) or not title.strip():
        raise ValidationError('Missing required fields: symbol, title')

    try:
        featured = get_services().db.add_featured_stock(
            normalize_symbol(data['symbol']), title.strip(),
            description=parse_optional_text(data.get('description'), 'Description'),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            added_by=user_id
        )
    except ValueError:
        raise ValidationError(INVALID_DATE_MESSAGE)
    return jsonify(featured), 201


@admin_bp.route('/api/admin/featured-stocks/<featured_id>', methods=['PUT'])
@require_admin
def update_featured_stock(featured_id, user_id):
    featured_id = parse_id(featured_id, 'featured stock ID')
    data = get_json_body()
    patch = FeaturedStockPatch.from_mapping(data)
    changes = dict(patch.changes())
    if 'symbol' in changes:
        patch.symbol = normalize_symbol(patch.symbol)
    if 'title' in changes and (not isinstance(patch.title, str) or not patch.title.strip()):
        raise ValidationError('Title cannot be empty')
    _optional_text_fields(patch, changes, 'description')
    if 'start_date' in changes and patch.start_date is None:
        raise ValidationError('start_date cannot be empty')

    db = get_services().db
    if not db.get_featured_stock(featured_id):
        return _not_found('Featured stock not found')

    # Dates are parsed and normalized by storage
    try:
        return jsonify(db.update_featured_stock(featured_id, patch))
    except ValueError:
        raise ValidationError(INVALID_DATE_MESSAGE)


@admin_bp.route('/api/admin/featured-stocks/<featured_id>', methods=['DELETE'])
@require_admin
def remove_featured_stock(featured_id, user_id):
    featured_id = parse_id(featured_id, 'featured stock ID')
    if not get_services().db.remove_featured_stock(featured_id):
        return _not_found('Featured stock not found')
    return jsonify({'success': True, 'message': 'Featured stock removed successfully'})


# API logs

@admin_bp.route('/api/admin/logs', methods=['GET'])
@require_admin
def get_logs(user_id):
    try:
        limit = int(request.args.get('limit', DEFAULT_LOG_LIMIT))
    except ValueError:
        raise ValidationError('limit must be an integer')
    if not 1 <= limit <= MAX_LOG_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LOG_LIMIT}")

    filter_user = request.args.get('userId')
    filter_user = parse_id(filter_user, 'user ID') if filter_user else None

    return jsonify(get_services().db.get_api_logs(user_id=filter_user, limit=limit))
