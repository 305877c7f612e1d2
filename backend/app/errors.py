# ABOUTME: Final error handling for the Flask app: typed failures mapped to HTTP statuses
# ABOUTME: API requests get a JSON envelope, page requests an HTML error page or a login redirect

import logging

from flask import jsonify, redirect, current_app
from werkzeug.exceptions import HTTPException

from auth import is_api_request
from database import AlreadyExistsError, DatabaseUnavailableError
from fmp_client import MarketDataError, RateLimitError

logger = logging.getLogger(__name__)

ERROR_PAGE = """<!DOCTYPE html>
<html>
<head><title>{status} - StockInfo</title></head>
<body>
  <h1>{status}</h1>
  <p>{message}</p>
  <p><a href="/">Back to StockInfo</a></p>
</body>
</html>
"""


class ValidationError(Exception):
    """Malformed or missing request input"""


def _status_for(error: Exception):
    if isinstance(error, HTTPException):
        return error.code or 500, error.description
    if isinstance(error, ValidationError):
        return 400, str(error)
    if isinstance(error, AlreadyExistsError):
        return 409, str(error)
    if isinstance(error, RateLimitError):
        return 429, str(error)
    if isinstance(error, DatabaseUnavailableError):
        return 503, 'Service temporarily unavailable'
    if isinstance(error, MarketDataError):
        return 500, str(error)
    return 500, 'Internal server error'


def error_response(error: Exception):
    # Routing redirects (e.g. trailing slash) are responses, not failures
    if isinstance(error, HTTPException) and error.code and error.code < 400:
        return error

    status, message = _status_for(error)

    if status >= 500:
        logger.error(f"Unhandled error ({status}): {error}", exc_info=True)

    if not is_api_request():
        if status == 401:
            return redirect('/login')
        return ERROR_PAGE.format(status=status, message=message), status, {'Content-Type': 'text/html'}

    body = {'success': False, 'message': message}
    if current_app.config.get('ENVIRONMENT') != 'production':
        body['error'] = f"{type(error).__name__}: {error}"
    return jsonify(body), status


def register_error_handlers(app):
    app.register_error_handler(Exception, error_response)
