# ABOUTME: Shared service container for Flask route handlers
# ABOUTME: Populated by create_app() at startup, accessed by blueprint modules through get_services()

from dataclasses import dataclass
from typing import Any

from flask import current_app

EXTENSION_KEY = 'stockinfo'


@dataclass
class Services:
    db: Any
    market: Any


def init_services(app, db, market) -> Services:
    services = Services(db=db, market=market)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]
