# ABOUTME: Portfolio and position storage for user holdings
# ABOUTME: Positions belong to one portfolio and are removed with it by cascading delete

import logging
from typing import Optional, Dict, Any, List

from database.core import utcnow
from database.patches import PortfolioPatch, PositionPatch, build_set_clause

logger = logging.getLogger(__name__)


class PortfoliosMixin:
    def create_portfolio(self, user_id: int, name: str, description: str = None) -> Dict[str, Any]:
        """Create a portfolio for a user and return the stored row"""
        portfolio_id = self.insert(
            'INSERT INTO portfolios (user_id, name, description) VALUES (?, ?, ?)',
            (user_id, name, description)
        )
        return self.get_portfolio(portfolio_id)

    def get_portfolio(self, portfolio_id: int) -> Optional[Dict[str, Any]]:
        """Get a portfolio by ID"""
        return self.get_one('SELECT * FROM portfolios WHERE id = ?', (portfolio_id,))

    def get_user_portfolios(self, user_id: int) -> List[Dict[str, Any]]:
        """Get all portfolios for a user"""
        return self.query(
            'SELECT * FROM portfolios WHERE user_id = ? ORDER BY created_at, id',
            (user_id,)
        )

    def update_portfolio(self, portfolio_id: int, patch: PortfolioPatch) -> Optional[Dict[str, Any]]:
        if patch.is_empty():
            return self.get_portfolio(portfolio_id)

        clause, values = build_set_clause(patch)
        self.update(f"UPDATE portfolios SET {clause} WHERE id = ?", (*values, portfolio_id))
        return self.get_portfolio(portfolio_id)

    def delete_portfolio(self, portfolio_id: int) -> bool:
        """Delete a portfolio and, by cascade, its positions. Returns True if deleted."""
        return self.update('DELETE FROM portfolios WHERE id = ?', (portfolio_id,)) > 0

    def get_portfolio_positions(self, portfolio_id: int) -> List[Dict[str, Any]]:
        return self.query(
            'SELECT * FROM portfolio_positions WHERE portfolio_id = ? ORDER BY id',
            (portfolio_id,)
        )

    def get_position(self, position_id: int) -> Optional[Dict[str, Any]]:
        return self.get_one('SELECT * FROM portfolio_positions WHERE id = ?', (position_id,))

    def add_position(self, portfolio_id: int, symbol: str, shares: float, purchase_price: float,
                     purchase_date: str = None, notes: str = None) -> Dict[str, Any]:
        """Add a position; purchase date defaults to now"""
        position_id = self.insert("""
            INSERT INTO portfolio_positions
                (portfolio_id, symbol, shares, purchase_price, purchase_date, notes)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (portfolio_id, symbol.upper(), shares, purchase_price, purchase_date or utcnow(), notes))
        return self.get_position(position_id)

    def update_position(self, position_id: int, patch: PositionPatch) -> Optional[Dict[str, Any]]:
        if patch.is_empty():
            return self.get_position(position_id)

        clause, values = build_set_clause(patch)
        self.update(f"UPDATE portfolio_positions SET {clause} WHERE id = ?", (*values, position_id))
        return self.get_position(position_id)

    def delete_position(self, position_id: int) -> bool:
        return self.update('DELETE FROM portfolio_positions WHERE id = ?', (position_id,)) > 0
