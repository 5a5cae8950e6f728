"""Portfolio query service."""

from typing import Optional

from b3ledger.database.base import Database
from b3ledger.domain.entities import HoldingSummary, Institution, Portfolio, Transaction


class PortfolioService:
    """Read-side access to a user's consolidated portfolio."""

    def __init__(self, db: Database):
        """Initialize portfolio service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_portfolio(self, user_id: int) -> Optional[Portfolio]:
        """Get the portfolio of a user, or None if nothing was consolidated yet."""
        return self.db.get_portfolio_by_user(user_id)

    def get_holdings(self, user_id: int) -> list[HoldingSummary]:
        """Summarize the user's assets with their transaction count and total value."""
        portfolio = self.get_portfolio(user_id)
        if portfolio is None:
            return []
        return self.db.get_holdings(portfolio.id)

    def list_transactions(self, user_id: int, asset_id: Optional[int] = None) -> list[Transaction]:
        """List the user's transactions, optionally for one asset."""
        portfolio = self.get_portfolio(user_id)
        if portfolio is None:
            return []
        return self.db.list_transactions(portfolio_id=portfolio.id, asset_id=asset_id)

    def list_institutions(self, user_id: int) -> list[Institution]:
        return self.db.list_user_institutions(user_id)
