"""
Portfolio Tracker - Add, edit, sell and delete positions.

Operations take the current item list and return a new one; callers
persist the result. New items go to the front so the list reads newest
first.
"""

import logging
from dataclasses import replace
from datetime import date

from .models import PortfolioItem

logger = logging.getLogger(__name__)


class PortfolioTracker:
    """Lifecycle operations on a list of portfolio items."""

    def add_item(self, items: list[PortfolioItem], item: PortfolioItem) -> list[PortfolioItem]:
        """Insert a new item at the front. Raises ValueError if the id is already used."""
        if any(i.id == item.id for i in items):
            raise ValueError(f"Portfolio item id already exists: {item.id}")
        logger.info(f"Added {item.amount:g} {item.asset_symbol} @ {item.buy_price:,.2f}")
        return [item, *items]

    def edit_item(self, items: list[PortfolioItem], item_id: str, **changes) -> list[PortfolioItem]:
        """
        Change fields of an item, keeping its id.

        Raises:
            KeyError: Unknown id
            ValueError: The edited item is invalid
        """
        existing = self._find(items, item_id)
        changes.pop("id", None)
        edited = replace(existing, **changes)
        return [edited if i.id == item_id else i for i in items]

    def sell_item(
        self,
        items: list[PortfolioItem],
        item_id: str,
        price: float | None = None,
        when: date | None = None,
        prices: dict[str, float] | None = None,
    ) -> list[PortfolioItem]:
        """
        Mark an item as sold.

        Args:
            items: Current items
            item_id: Item to sell
            price: Sale price (default: latest price, else the buy price)
            when: Sale date (default: today)
            prices: Latest prices by symbol, used when price is None
        """
        existing = self._find(items, item_id)
        if price is None:
            price = (prices or {}).get(existing.asset_symbol, existing.buy_price)
        sold = existing.sell(price, when or date.today())
        logger.info(
            f"Sold {sold.amount:g} {sold.asset_symbol} @ {price:,.2f} "
            f"(P&L {sold.realized_pnl:+,.2f})"
        )
        return [sold if i.id == item_id else i for i in items]

    def delete_item(self, items: list[PortfolioItem], item_id: str) -> list[PortfolioItem]:
        """Remove an item permanently."""
        self._find(items, item_id)
        return [i for i in items if i.id != item_id]

    @staticmethod
    def _find(items: list[PortfolioItem], item_id: str) -> PortfolioItem:
        for item in items:
            if item.id == item_id:
                return item
        raise KeyError(f"Unknown portfolio item id: {item_id}")
