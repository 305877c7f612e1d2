# ABOUTME: User account storage: lookup, creation, partial profile updates and deletion
# ABOUTME: Duplicate usernames, emails or Google ids surface as AlreadyExistsError

import logging
from typing import Optional, Dict, Any, List

from database.core import utcnow
from database.exceptions import AlreadyExistsError
from database.patches import UserPatch, build_set_clause

logger = logging.getLogger(__name__)

PUBLIC_USER_COLUMNS = (
    'id, username, email, full_name, role, avatar, address, dark_mode, '
    'created_at, last_login, google_id'
)


def _duplicate_field(error: AlreadyExistsError) -> str:
    message = str(error)
    for column in ('username', 'email', 'google_id'):
        if f"users.{column}" in message:
            return column
    return 'record'


class UsersMixin:

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Get user by id (includes the password hash)"""
        return self.get_one('SELECT * FROM users WHERE id = ?', (user_id,))

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return self.get_one('SELECT * FROM users WHERE username = ?', (username,))

    def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self.get_one('SELECT * FROM users WHERE email = ?', (email,))

    def get_user_by_google_id(self, google_id: str) -> Optional[Dict[str, Any]]:
        return self.get_one('SELECT * FROM users WHERE google_id = ?', (google_id,))

    def get_all_users(self) -> List[Dict[str, Any]]:
        return self.query(f"SELECT {PUBLIC_USER_COLUMNS} FROM users ORDER BY id")

    def create_user(self, username: str, email: str, full_name: str,
                    password_hash: str = None, role: str = 'user',
                    avatar: str = None, address: str = None, dark_mode: bool = False,
                    google_id: str = None) -> Dict[str, Any]:
        """Create a new user and return the stored row"""
        try:
            user_id = self.insert("""
                INSERT INTO users (username, password_hash, email, full_name, role,
                                   avatar, address, dark_mode, google_id)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (username, password_hash, email, full_name, role,
                  avatar, address, 1 if dark_mode else 0, google_id))
        except AlreadyExistsError as e:
            field = _duplicate_field(e)
            raise AlreadyExistsError(f"A user with this {field} already exists") from e

        logger.info(f"Created user {user_id} ({username})")
        return self.get_user(user_id)

    def update_user(self, user_id: int, patch: UserPatch) -> Optional[Dict[str, Any]]:
        """Apply only the fields set on `patch`; an empty patch just re-reads the row"""
        if isinstance(patch.dark_mode, bool):
            patch.dark_mode = int(patch.dark_mode)

        if patch.is_empty():
            return self.get_user(user_id)

        clause, values = build_set_clause(patch)
        try:
            self.update(f"UPDATE users SET {clause} WHERE id = ?", (*values, user_id))
        except AlreadyExistsError as e:
            field = _duplicate_field(e)
            raise AlreadyExistsError(f"A user with this {field} already exists") from e

        return self.get_user(user_id)

    def update_last_login(self, user_id: int):
        """Update user's last login timestamp"""
        self.update('UPDATE users SET last_login = ? WHERE id = ?', (utcnow(), user_id))

    def delete_user(self, user_id: int) -> bool:
        """Delete a user; watchlist, portfolios and positions cascade. Returns True if a row was removed."""
        deleted = self.update('DELETE FROM users WHERE id = ?', (user_id,)) > 0
        if deleted:
            logger.info(f"Deleted user {user_id}")
        return deleted
