# ABOUTME: Database package composing domain-specific mixins into a single Database class
# ABOUTME: Re-exports Database and the typed storage errors for imports across the codebase

from database.core import DatabaseCore
from database.exceptions import AlreadyExistsError, DatabaseUnavailableError
from database.schema import SchemaMixin, initialize_with_retry
from database.users import UsersMixin
from database.watchlist import WatchlistMixin
from database.portfolios import PortfoliosMixin
from database.settings import SettingsMixin
from database.stocks import StocksMixin
from database.api_logs import ApiLogsMixin


class Database(DatabaseCore, SchemaMixin, UsersMixin, WatchlistMixin, PortfoliosMixin,
               SettingsMixin, StocksMixin, ApiLogsMixin):
    pass


__all__ = [
    'Database',
    'AlreadyExistsError',
    'DatabaseUnavailableError',
    'initialize_with_retry',
]
