# ABOUTME: Watchlist management for users
# ABOUTME: Handles adding, removing, and checking symbols; symbols are stored upper-cased

import logging
from typing import Dict, Any, List

from database.exceptions import AlreadyExistsError

logger = logging.getLogger(__name__)


class WatchlistMixin:
    def add_to_watchlist(self, user_id: int, symbol: str) -> Dict[str, Any]:
        symbol = symbol.upper()
        try:
            item_id = self.insert(
                'INSERT INTO user_watchlist (user_id, symbol) VALUES (?, ?)',
                (user_id, symbol)
            )
        except AlreadyExistsError as e:
            raise AlreadyExistsError(f"Stock {symbol} is already in watchlist") from e
        return self.get_one('SELECT * FROM user_watchlist WHERE id = ?', (item_id,))

    def remove_from_watchlist(self, user_id: int, symbol: str) -> bool:
        removed = self.update(
            'DELETE FROM user_watchlist WHERE user_id = ? AND symbol = ?',
            (user_id, symbol.upper())
        )
        return removed > 0

    def get_watchlist(self, user_id: int) -> List[Dict[str, Any]]:
        return self.query(
            'SELECT * FROM user_watchlist WHERE user_id = ? ORDER BY created_at DESC, id DESC',
            (user_id,)
        )

    def is_in_watchlist(self, user_id: int, symbol: str) -> bool:
        row = self.get_one(
            'SELECT 1 FROM user_watchlist WHERE user_id = ? AND symbol = ?',
            (user_id, symbol.upper())
        )
        return row is not None
