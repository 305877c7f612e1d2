# ABOUTME: Database DDL schema initialization for all application tables
# ABOUTME: Creates tables inside one transaction and seeds the first admin account

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT,
        email TEXT NOT NULL UNIQUE,
        full_name TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'user',
        avatar TEXT,
        address TEXT,
        dark_mode INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        last_login TIMESTAMP,
        google_id TEXT UNIQUE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS user_watchlist (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        symbol TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
        UNIQUE (user_id, symbol)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS portfolios (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS portfolio_positions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        portfolio_id INTEGER NOT NULL,
        symbol TEXT NOT NULL,
        shares REAL NOT NULL,
        purchase_price REAL NOT NULL,
        purchase_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        notes TEXT,
        FOREIGN KEY (portfolio_id) REFERENCES portfolios(id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS app_settings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        setting_key TEXT NOT NULL UNIQUE,
        setting_value TEXT,
        description TEXT,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_by INTEGER,
        FOREIGN KEY (updated_by) REFERENCES users(id) ON DELETE SET NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS api_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER,
        endpoint TEXT NOT NULL,
        request_time TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        response_time INTEGER,
        success INTEGER NOT NULL,
        error_message TEXT,
        FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS restricted_stocks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        symbol TEXT NOT NULL UNIQUE,
        reason TEXT,
        added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        added_by INTEGER,
        FOREIGN KEY (added_by) REFERENCES users(id) ON DELETE SET NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS featured_stocks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        symbol TEXT NOT NULL,
        title TEXT NOT NULL,
        description TEXT,
        start_date TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        end_date TIMESTAMP,
        added_by INTEGER,
        FOREIGN KEY (added_by) REFERENCES users(id) ON DELETE SET NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_portfolios_user ON portfolios(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_positions_portfolio ON portfolio_positions(portfolio_id)",
    "CREATE INDEX IF NOT EXISTS idx_api_logs_request_time ON api_logs(request_time)",
]


class SchemaMixin:

    def init_schema(self):
        """Create all tables atomically; any failure rolls the whole schema back"""
        logger.info('Initializing database schema...')
        try:
            with self.transaction() as conn:
                for statement in SCHEMA_STATEMENTS:
                    conn.execute(statement)
        except Exception as e:
            logger.error(f"Failed to initialize database schema: {e}", exc_info=True)
            raise
        logger.info('Database schema initialized successfully')

    def create_admin_user_if_needed(self, username: str, email: str, password_hash: Optional[str]) -> Optional[int]:
        """Seed an admin account when the users table is empty. Returns the new id, if any."""
        row = self.get_one('SELECT COUNT(*) AS count FROM users')
        if row['count'] > 0:
            logger.info(f"{row['count']} users already exist in the database")
            return None

        if not password_hash:
            logger.warning('No users exist and no admin password is configured - skipping admin seed')
            return None

        logger.info('No users found. Creating admin user...')
        user_id = self.insert("""
            INSERT INTO users (username, password_hash, email, full_name, role)
            VALUES (?, ?, ?, 'Administrator', 'admin')
        """, (username, password_hash, email))
        logger.info(f"Admin user '{username}' created")
        return user_id

    def setup(self, admin_username: str = 'admin', admin_email: str = 'admin@stockinfo.com',
              admin_password_hash: Optional[str] = None):
        self.init_schema()
        self.create_admin_user_if_needed(admin_username, admin_email, admin_password_hash)


def initialize_with_retry(setup: Callable[[], None], attempts: int = 3, delay: float = 2.0,
                          sleep: Callable[[float], None] = time.sleep):
    """Run `setup`, retrying with a fixed backoff. Re-raises the last failure."""
    for attempt in range(1, attempts + 1):
        try:
            setup()
            logger.info('Database setup complete')
            return
        except Exception as e:
            logger.error(f"Database setup attempt {attempt} failed: {e}")
            if attempt >= attempts:
                logger.error('Database initialization failed after multiple attempts')
                raise
            logger.info(f"Retrying database setup in {delay:g} seconds...")
            sleep(delay)
