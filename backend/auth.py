# ABOUTME: Handles local and Google OAuth authentication and session management
# ABOUTME: Provides decorators for protecting routes by login and by role

import os
import re
import logging
from enum import Enum
from functools import wraps
from typing import Optional, Dict, Any, Iterable

from flask import session, request, g
from google.oauth2 import id_token
from google.auth.transport import requests as google_requests
from google_auth_oauthlib.flow import Flow
from werkzeug.exceptions import Unauthorized, Forbidden
from werkzeug.security import generate_password_hash, check_password_hash

from app.deps import get_services
from database import AlreadyExistsError
from database.patches import UserPatch

logger = logging.getLogger(__name__)

OAUTH_SCOPES = [
    'openid',
    'https://www.googleapis.com/auth/userinfo.email',
    'https://www.googleapis.com/auth/userinfo.profile'
]

# User agents of programmatic clients that should get JSON instead of a redirect
API_CLIENT_SIGNATURES = ('axios', 'python-requests', 'curl')

MIN_PASSWORD_LENGTH = 6


class Role(str, Enum):
    USER = 'user'
    ADMIN = 'admin'


class EmailNotVerifiedError(Exception):
    """Google asserted an email that matches an existing account but is not verified"""


def has_role(user: Optional[Dict[str, Any]], roles: Iterable[Role]) -> bool:
    """The single authorization predicate: is `user` in one of `roles`?"""
    if not user:
        return False
    try:
        role = Role(user.get('role'))
    except ValueError:
        return False
    return role in set(roles)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(user: Dict[str, Any], password: str) -> bool:
    """Compare against the stored hash; accounts without one (OAuth-only) never match"""
    stored = user.get('password_hash')
    if not stored or not password:
        return False
    return check_password_hash(stored, password)


def strip_sensitive(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copy of a user row without the password hash"""
    if user is None:
        return None
    return {key: value for key, value in user.items() if key != 'password_hash'}


def is_api_request() -> bool:
    """Heuristic for requests that expect JSON rather than an HTML page"""
    if request.headers.get('X-Requested-With') == 'XMLHttpRequest':
        return True
    if request.path.startswith('/api/'):
        return True
    if request.is_json or 'application/json' in request.headers.get('Accept', ''):
        return True
    user_agent = request.headers.get('User-Agent', '').lower()
    return any(signature in user_agent for signature in API_CLIENT_SIGNATURES)


def login_user(user: Dict[str, Any]):
    """Bind the session to `user`; only the id is kept server-side"""
    session.clear()
    session.permanent = True
    session['user_id'] = user['id']


def logout_user():
    session.clear()


def current_user() -> Optional[Dict[str, Any]]:
    """Load the logged-in user for this request, clearing sessions whose user is gone"""
    if 'current_user' in g:
        return g.current_user

    user = None
    user_id = session.get('user_id')
    if user_id is not None:
        user = get_services().db.get_user(user_id)
        if user is None:
            logger.info(f"Session refers to missing user {user_id} - clearing")
            session.clear()

    g.current_user = user
    return user


def require_user_auth(f):
    """
    Decorator to protect routes that require user authentication.
    Injects the logged-in user's id as the `user_id` keyword argument.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            raise Unauthorized('Authentication required')

        kwargs['user_id'] = user['id']
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: Role):
    """Decorator factory: 401 when not logged in, 403 when the user's role is not allowed"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = current_user()
            if user is None:
                raise Unauthorized('Authentication required')
            if not has_role(user, roles):
                logger.info(f"User {user['id']} denied: requires role {[r.value for r in roles]}")
                raise Forbidden('Insufficient permissions')

            kwargs['user_id'] = user['id']
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def oauth_configured(config) -> bool:
    return bool(config.get('GOOGLE_CLIENT_ID') and config.get('GOOGLE_CLIENT_SECRET'))


def init_oauth_client(config, state: str = None) -> Flow:
    """Initialize Google OAuth client"""
    redirect_uri = config['GOOGLE_CALLBACK_URL']

    # Google refuses plain http redirects unless told this is local development
    if 'localhost' in redirect_uri or '127.0.0.1' in redirect_uri:
        os.environ['OAUTHLIB_INSECURE_TRANSPORT'] = '1'

    client_config = {
        "web": {
            "client_id": config['GOOGLE_CLIENT_ID'],
            "client_secret": config['GOOGLE_CLIENT_SECRET'],
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": [redirect_uri],
        }
    }

    return Flow.from_client_config(
        client_config,
        scopes=OAUTH_SCOPES,
        redirect_uri=redirect_uri,
        state=state
    )


def exchange_google_code(config, code: str, state: str, code_verifier: str = None) -> Dict[str, Any]:
    """Trade an authorization code for tokens and return the verified ID token claims"""
    flow = init_oauth_client(config, state=state)
    if code_verifier:
        flow.code_verifier = code_verifier
    flow.fetch_token(code=code)

    return id_token.verify_oauth2_token(
        flow.credentials.id_token,
        google_requests.Request(),
        config['GOOGLE_CLIENT_ID']
    )


def generate_oauth_username(display_name: str, google_id: str) -> str:
    base = re.sub(r'\s+', '', display_name or '').lower() or 'user'
    return f"{base}_{google_id[:5]}"


def resolve_google_user(db, id_info: Dict[str, Any]) -> Dict[str, Any]:
    """Find or create the local account for a Google identity.

    Matches by Google id first, then by email (linking the Google id only when
    Google asserts the email is verified), else creates a new account.
    """
    google_id = id_info['sub']
    user = db.get_user_by_google_id(google_id)
    if user:
        return user

    email = id_info.get('email') or f"{google_id}@google.user"
    display_name = id_info.get('name') or email.split('@')[0]

    existing = db.get_user_by_email(email)
    if existing:
        if not id_info.get('email_verified'):
            logger.warning(f"Refusing to link Google account {google_id} to user {existing['id']}: email not verified")
            raise EmailNotVerifiedError(email)
        logger.info(f"Linking Google account {google_id} to existing user {existing['id']}")
        return db.update_user(existing['id'], UserPatch(google_id=google_id))

    username = generate_oauth_username(display_name, google_id)
    try:
        return db.create_user(username, email, display_name,
                              avatar=id_info.get('picture'), google_id=google_id)
    except AlreadyExistsError:
        # Display-name collision; the full Google id is unique
        return db.create_user(f"{username}{google_id[5:]}", email, display_name,
                              avatar=id_info.get('picture'), google_id=google_id)
