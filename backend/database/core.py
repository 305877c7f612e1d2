# ABOUTME: Core database class owning the SQLite connection and the query/insert/update primitives
# ABOUTME: Connection is created lazily, memoized, health-checked, and re-created if it was lost

import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List, Sequence

from database.exceptions import AlreadyExistsError, DatabaseUnavailableError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def utcnow() -> str:
    """Current UTC time in the same format SQLite's CURRENT_TIMESTAMP produces"""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def normalize_timestamp(value) -> Optional[str]:
    """Coerce a datetime or ISO-8601 string into the stored timestamp format.

    Raises ValueError for strings that are not ISO-8601 dates or datetimes.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed.strftime(TIMESTAMP_FORMAT)


class DatabaseCore:
    def __init__(self, path: str = 'data/stockinfo.db', timeout: float = 10.0):
        self.path = str(path)
        self.timeout = timeout

        # Single connection shared by all request threads; the lock serializes access
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def _connect(self) -> sqlite3.Connection:
        if self.path != ':memory:':
            directory = os.path.dirname(os.path.abspath(self.path))
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                logger.error(f"Could not create database directory {directory}: {e}")
                raise DatabaseUnavailableError(f"Database directory unavailable: {directory}") from e

        try:
            conn = sqlite3.connect(self.path, timeout=self.timeout, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute('PRAGMA foreign_keys = ON')
            conn.execute('PRAGMA journal_mode = WAL')
            conn.execute('PRAGMA synchronous = NORMAL')
        except sqlite3.Error as e:
            logger.error(f"Could not connect to database at {self.path}: {e}")
            raise DatabaseUnavailableError('Database connection not available') from e

        logger.info(f"Connected to SQLite database at {self.path}")
        return conn

    def _is_alive(self, conn: sqlite3.Connection) -> bool:
        try:
            conn.execute('SELECT 1')
            return True
        except sqlite3.Error:
            return False

    def get_connection(self) -> sqlite3.Connection:
        """Return the memoized connection, opening (or re-opening) it on demand"""
        with self._lock:
            if self._conn is not None and not self._is_alive(self._conn):
                logger.warning('Database connection lost - reconnecting')
                self._conn = None
            if self._conn is None:
                self._conn = self._connect()
            return self._conn

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def close(self):
        """Close the connection if one is open"""
        with self._lock:
            if self._conn is None:
                return
            try:
                self._conn.close()
                logger.info('Database connection closed')
            finally:
                self._conn = None

    @contextmanager
    def transaction(self):
        """Run a block of statements atomically: commit on success, roll back and re-raise on failure"""
        with self._lock:
            conn = self.get_connection()
            try:
                conn.execute('BEGIN')
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def _execute(self, sql: str, params: Sequence[Any]) -> sqlite3.Cursor:
        with self._lock:
            conn = self.get_connection()
            try:
                cursor = conn.execute(sql, tuple(params))
                conn.commit()
                return cursor
            except sqlite3.IntegrityError as e:
                conn.rollback()
                if 'UNIQUE constraint failed' in str(e):
                    raise AlreadyExistsError(str(e)) from e
                raise
            except sqlite3.Error:
                conn.rollback()
                raise

    def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run a SELECT and return every row as a dict"""
        with self._lock:
            cursor = self.get_connection().execute(sql, tuple(params))
            return [dict(row) for row in cursor.fetchall()]

    def get_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
        """Run a SELECT and return the first row as a dict, or None"""
        with self._lock:
            cursor = self.get_connection().execute(sql, tuple(params))
            row = cursor.fetchone()
            return dict(row) if row is not None else None

    def insert(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run an INSERT and return the new row id"""
        return self._execute(sql, params).lastrowid

    def update(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run an UPDATE/DELETE and return the number of affected rows"""
        return self._execute(sql, params).rowcount
