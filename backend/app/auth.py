# ABOUTME: Authentication routes for local login/registration, Google OAuth, and profile management
# ABOUTME: Sessions carry only the user id; every user payload is stripped of the password hash

import logging

from flask import Blueprint, jsonify, request, session, redirect, current_app

from app.deps import get_services
from app.errors import ValidationError
from app.helpers import get_json_body, parse_email, parse_optional_text
from auth import (
    MIN_PASSWORD_LENGTH, EmailNotVerifiedError, current_user, exchange_google_code,
    hash_password, init_oauth_client, login_user, logout_user, oauth_configured,
    require_user_auth, resolve_google_user, strip_sensitive, verify_password,
)
from database import AlreadyExistsError
from database.patches import UserPatch

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

PROFILE_FIELD_ALIASES = {
    'fullName': 'full_name',
    'darkMode': 'dark_mode',
}
PROFILE_FIELDS = {'full_name', 'email', 'avatar', 'address', 'dark_mode'}


def _require_text(data: dict, *names: str) -> list:
    values = [data.get(name) for name in names]
    if any(not isinstance(value, str) or not value.strip() for value in values):
        raise ValidationError('All fields are required')
    return [value.strip() for value in values]


@auth_bp.route('/auth/login', methods=['POST'])
def login():
    """Login with username and password"""
    data = get_json_body()
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        raise ValidationError('Username and password are required')
    username = parse_optional_text(username, 'Username', nullable=False)
    password = parse_optional_text(password, 'Password', nullable=False)

    db = get_services().db
    user = db.get_user_by_username(username)
    if not user:
        return jsonify({'success': False, 'message': 'Incorrect username'}), 401

    if not verify_password(user, password):
        logger.info(f"Failed login for user {user['id']}")
        return jsonify({'success': False, 'message': 'Incorrect password'}), 401

    db.update_last_login(user['id'])
    login_user(user)
    logger.info(f"User {user['id']} logged in")

    return jsonify({'success': True, 'user': strip_sensitive(db.get_user(user['id']))})


@auth_bp.route('/auth/register', methods=['POST'])
def register():
    """Register a new local account and log it in"""
    data = get_json_body()
    if 'full_name' in data and 'fullName' not in data:
        data['fullName'] = data['full_name']

    username, email, password, full_name = _require_text(data, 'username', 'email', 'password', 'fullName')
    email = parse_email(email)

    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    db = get_services().db
    if db.get_user_by_username(username):
        return jsonify({'success': False, 'message': 'Username already taken'}), 400
    if db.get_user_by_email(email):
        return jsonify({'success': False, 'message': 'Email already registered'}), 400

    try:
        user = db.create_user(username, email, full_name, password_hash=hash_password(password))
    except AlreadyExistsError as e:
        # Lost a race with a concurrent registration
        return jsonify({'success': False, 'message': str(e)}), 400

    login_user(user)
    return jsonify({'success': True, 'user': strip_sensitive(user)})


@auth_bp.route('/auth/logout', methods=['GET'])
def logout():
    """Logout user and clear session"""
    logout_user()
    return jsonify({'success': True, 'message': 'Logged out successfully'})


@auth_bp.route('/auth/user', methods=['GET'])
@require_user_auth
def get_current_user(user_id):
    """Get current logged-in user info"""
    return jsonify({'user': strip_sensitive(current_user())})


@auth_bp.route('/auth/user', methods=['PUT'])
@require_user_auth
def update_current_user(user_id):
    """Update own profile; fields absent from the body are left unchanged"""
    data = get_json_body()
    profile = {key: value for key, value in data.items()
               if PROFILE_FIELD_ALIASES.get(key, key) in PROFILE_FIELDS}
    patch = UserPatch.from_mapping(profile, aliases=PROFILE_FIELD_ALIASES)

    changes = dict(patch.changes())
    if 'email' in changes:
        patch.email = parse_email(patch.email)
    if 'full_name' in changes and (not isinstance(patch.full_name, str) or not patch.full_name.strip()):
        raise ValidationError('Full name cannot be empty')
    if 'dark_mode' in changes:
        patch.dark_mode = bool(patch.dark_mode)
    for name in ('avatar', 'address'):
        if name in changes:
            setattr(patch, name, parse_optional_text(changes[name], name.capitalize()))

    new_password = data.get('newPassword')
    if new_password is not None:
        if not isinstance(new_password, str) or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        user = current_user()
        if user.get('password_hash') and not verify_password(
                user, parse_optional_text(data.get('currentPassword'), 'Current password') or ''):
            raise ValidationError('Current password is incorrect')
        patch.password_hash = hash_password(new_password)

    updated = get_services().db.update_user(user_id, patch)
    return jsonify({'success': True, 'user': strip_sensitive(updated)})


@auth_bp.route('/auth/google', methods=['GET'])
def google_login():
    """Redirect to Google's consent screen"""
    if not oauth_configured(current_app.config):
        logger.warning('Google login requested but OAuth is not configured')
        return redirect('/login?error=google-auth-unavailable')

    flow = init_oauth_client(current_app.config)
    authorization_url, state = flow.authorization_url(
        access_type='offline',
        include_granted_scopes='true',
        prompt='select_account'
    )
    # Store state in session for CSRF protection
    session['oauth_state'] = state
    session['oauth_code_verifier'] = getattr(flow, 'code_verifier', None)
    return redirect(authorization_url)


@auth_bp.route('/auth/google/callback', methods=['GET'])
def google_callback():
    """Handle OAuth callback from Google"""
    if not oauth_configured(current_app.config):
        return redirect('/login?error=google-auth-unavailable')

    expected_state = session.pop('oauth_state', None)
    code_verifier = session.pop('oauth_code_verifier', None)

    code = request.args.get('code')
    if request.args.get('error') or not code:
        logger.info(f"Google login cancelled or failed: {request.args.get('error')}")
        return redirect('/login?error=google-auth-failed')

    if not expected_state or request.args.get('state') != expected_state:
        logger.warning('Google callback state mismatch')
        return redirect('/login?error=google-auth-failed')

    try:
        id_info = exchange_google_code(current_app.config, code, expected_state, code_verifier)
    except Exception as e:
        logger.error(f"Google token exchange failed: {e}")
        return redirect('/login?error=google-auth-failed')

    db = get_services().db
    try:
        user = resolve_google_user(db, id_info)
    except EmailNotVerifiedError:
        return redirect('/login?error=google-email-unverified')

    db.update_last_login(user['id'])
    login_user(user)
    logger.info(f"User {user['id']} logged in with Google")
    return redirect('/dashboard')
