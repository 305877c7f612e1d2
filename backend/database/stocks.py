# ABOUTME: Administrative stock lists: restricted symbols and featured stocks
# ABOUTME: Restricted symbols block watchlist additions; featured stocks carry an optional display window

import logging
from typing import Optional, Dict, Any, List

from database.core import utcnow, normalize_timestamp
from database.exceptions import AlreadyExistsError
from database.patches import UNSET, FeaturedStockPatch, build_set_clause

logger = logging.getLogger(__name__)


class StocksMixin:

    # Restricted stocks

    def get_restricted_stocks(self) -> List[Dict[str, Any]]:
        return self.query('SELECT * FROM restricted_stocks ORDER BY symbol')

    def get_restricted_stock(self, restricted_id: int) -> Optional[Dict[str, Any]]:
        return self.get_one('SELECT * FROM restricted_stocks WHERE id = ?', (restricted_id,))

    def is_stock_restricted(self, symbol: str) -> bool:
        row = self.get_one('SELECT 1 FROM restricted_stocks WHERE symbol = ?', (symbol.upper(),))
        return row is not None

    def add_restricted_stock(self, symbol: str, reason: str = None, added_by: int = None) -> Dict[str, Any]:
        symbol = symbol.upper()
        try:
            restricted_id = self.insert(
                'INSERT INTO restricted_stocks (symbol, reason, added_by) VALUES (?, ?, ?)',
                (symbol, reason, added_by)
            )
        except AlreadyExistsError as e:
            raise AlreadyExistsError(f"Stock {symbol} is already restricted") from e

        logger.info(f"Restricted stock {symbol} added by user {added_by}")
        return self.get_restricted_stock(restricted_id)

    def remove_restricted_stock(self, restricted_id: int) -> bool:
        return self.update('DELETE FROM restricted_stocks WHERE id = ?', (restricted_id,)) > 0

    # Featured stocks

    def get_featured_stocks(self, include_expired: bool = False) -> List[Dict[str, Any]]:
        """Currently featured stocks: no end date, or an end date still in the future"""
        if include_expired:
            return self.query('SELECT * FROM featured_stocks ORDER BY start_date DESC, id DESC')
        return self.query("""
            SELECT * FROM featured_stocks
            WHERE end_date IS NULL OR end_date > ?
            ORDER BY start_date DESC, id DESC
        """, (utcnow(),))

    def get_featured_stock(self, featured_id: int) -> Optional[Dict[str, Any]]:
        return self.get_one('SELECT * FROM featured_stocks WHERE id = ?', (featured_id,))

    def add_featured_stock(self, symbol: str, title: str, description: str = None,
                           start_date=None, end_date=None, added_by: int = None) -> Dict[str, Any]:
        """Add a featured stock. Dates accept ISO-8601 strings; start defaults to now."""
        featured_id = self.insert("""
            INSERT INTO featured_stocks (symbol, title, description, start_date, end_date, added_by)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (symbol.upper(), title, description,
              normalize_timestamp(start_date) or utcnow(),
              normalize_timestamp(end_date), added_by))
        return self.get_featured_stock(featured_id)

    def update_featured_stock(self, featured_id: int, patch: FeaturedStockPatch) -> Optional[Dict[str, Any]]:
        """Apply the set fields of a patch. Raises ValueError for dates that are not ISO-8601."""
        if patch.symbol is not UNSET:
            patch.symbol = patch.symbol.upper()
        for name in ('start_date', 'end_date'):
            if getattr(patch, name) is not UNSET:
                setattr(patch, name, normalize_timestamp(getattr(patch, name)))

        if patch.is_empty():
            return self.get_featured_stock(featured_id)

        clause, values = build_set_clause(patch)
        self.update(f"UPDATE featured_stocks SET {clause} WHERE id = ?", (*values, featured_id))
        return self.get_featured_stock(featured_id)

    def remove_featured_stock(self, featured_id: int) -> bool:
        return self.update('DELETE FROM featured_stocks WHERE id = ?', (featured_id,)) > 0
