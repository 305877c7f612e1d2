# ABOUTME: Page routes serving the static HTML shells of the single-page front end
# ABOUTME: Login/register bounce logged-in users to the dashboard; app pages require a session

from flask import Blueprint, current_app, redirect, send_from_directory

from auth import Role, current_user, require_role, require_user_auth

pages_bp = Blueprint('pages', __name__)


def _shell(filename: str):
    return send_from_directory(current_app.static_folder, filename)


@pages_bp.route('/login', methods=['GET'])
def login_page():
    if current_user():
        return redirect('/dashboard')
    return _shell('login.html')


@pages_bp.route('/register', methods=['GET'])
def register_page():
    if current_user():
        return redirect('/dashboard')
    return _shell('register.html')


@pages_bp.route('/', methods=['GET'])
@pages_bp.route('/dashboard', methods=['GET'])
@require_user_auth
def dashboard_page(user_id):
    return _shell('index.html')


@pages_bp.route('/stock/<symbol>', methods=['GET'])
@require_user_auth
def stock_page(symbol, user_id):
    # The client-side router reads the symbol from the URL
    return _shell('index.html')


@pages_bp.route('/admin', methods=['GET'])
@require_role(Role.ADMIN)
def admin_page(user_id):
    return _shell('admin.html')
