"""
Data models for the portfolio tracker.

A PortfolioItem is one purchase of an asset. Selling marks the item as
sold and records the sale; it stays in the portfolio as history so that
realized P&L can be reported.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import date

from monitor.core.models import parse_timestamp


def parse_date(value: str) -> date:
    """Parse "YYYY-MM-DD" or a full ISO-8601 timestamp into a date."""
    if "T" in value:
        return parse_timestamp(value).date()
    return date.fromisoformat(value)


@dataclass(frozen=True)
class PortfolioItem:
    """
    One position in the portfolio.

    Example: 0.5 BTC bought at $60,000 on 2026-01-15
    """

    asset_symbol: str  # Display symbol ("BTC", "AAPL"), stored uppercase
    amount: float
    buy_price: float
    buy_date: date
    is_sold: bool = False
    sell_price: float | None = None
    sell_date: date | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        """Validate item."""
        symbol = self.asset_symbol.strip().upper()
        if not symbol:
            raise ValueError("asset_symbol must not be empty")
        object.__setattr__(self, "asset_symbol", symbol)

        if self.amount <= 0:
            raise ValueError(f"amount must be positive, got {self.amount}")
        if self.buy_price < 0:
            raise ValueError(f"buy_price must not be negative, got {self.buy_price}")
        if self.is_sold:
            if self.sell_price is None or self.sell_date is None:
                raise ValueError("a sold item needs sell_price and sell_date")
            if self.sell_price < 0:
                raise ValueError(f"sell_price must not be negative, got {self.sell_price}")

    @property
    def cost_basis(self) -> float:
        """Amount paid for the position."""
        return self.amount * self.buy_price

    def value_at(self, price: float) -> float:
        return self.amount * price

    def profit_at(self, price: float) -> float:
        """Profit if the position were valued at price."""
        return self.value_at(price) - self.cost_basis

    def profit_percent_at(self, price: float) -> float:
        """Price change since purchase in percent."""
        if self.buy_price == 0:
            return 0.0
        return (price - self.buy_price) / self.buy_price * 100

    @property
    def realized_pnl(self) -> float:
        """Profit locked in by the sale; 0 while the position is held."""
        if not self.is_sold or self.sell_price is None:
            return 0.0
        return self.profit_at(self.sell_price)

    def sell(self, price: float, when: date) -> "PortfolioItem":
        """Return a sold copy of this item."""
        if self.is_sold:
            raise ValueError(f"Item {self.id} is already sold")
        return replace(self, is_sold=True, sell_price=price, sell_date=when)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "asset_symbol": self.asset_symbol,
            "amount": self.amount,
            "buy_price": self.buy_price,
            "buy_date": self.buy_date.isoformat(),
            "is_sold": self.is_sold,
            "sell_price": self.sell_price,
            "sell_date": self.sell_date.isoformat() if self.sell_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PortfolioItem":
        """Create from dictionary."""
        sell_price = data.get("sell_price")
        sell_date = data.get("sell_date")
        return cls(
            id=str(data["id"]),
            asset_symbol=data["asset_symbol"],
            amount=float(data["amount"]),
            buy_price=float(data["buy_price"]),
            buy_date=parse_date(data["buy_date"]),
            is_sold=bool(data.get("is_sold", False)),
            sell_price=float(sell_price) if sell_price is not None else None,
            sell_date=parse_date(sell_date) if sell_date else None,
        )
