# ABOUTME: Utility functions shared across Flask route handlers
# ABOUTME: Parses path ids, JSON bodies, numeric and text fields, raising ValidationError on bad input

from flask import request

from app.errors import ValidationError


def parse_id(value, label: str = 'ID') -> int:
    """Parse a path parameter as a positive integer id"""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label}")
    if parsed <= 0:
        raise ValidationError(f"Invalid {label}")
    return parsed


def get_json_body() -> dict:
    """Request body as a dict; an absent body is treated as empty"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def parse_number(value, label: str, positive: bool = True) -> float:
    """Parse a numeric body field, rejecting booleans and non-numeric strings"""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{label} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number")
    if positive and number <= 0:
        raise ValidationError(f"{label} must be a positive number")
    return number


def normalize_symbol(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('Stock symbol is required')
    symbol = value.strip().upper()
    if len(symbol) > 15 or not all(c.isalnum() or c in '.-^' for c in symbol):
        raise ValidationError(f"Invalid stock symbol: {symbol}")
    return symbol


def parse_optional_text(value, label: str, nullable: bool = True):
    """Parse a free-text body field; None is accepted only for nullable columns"""
    if value is None:
        if nullable:
            return None
        raise ValidationError(f"{label} cannot be empty")
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    if not nullable and not value.strip():
        raise ValidationError(f"{label} cannot be empty")
    return value


def parse_email(value) -> str:
    if not isinstance(value, str) or '@' not in value or len(value) > 254:
        raise ValidationError('A valid email address is required')
    return value.strip()
