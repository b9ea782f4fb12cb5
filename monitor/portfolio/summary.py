"""
Portfolio valuation - P&L and allocation over live prices.

Held items are valued at the latest price of their asset, falling back
to the buy price when no price is known (the position then shows no
unrealized P&L). Sold items contribute realized P&L only.
"""

from dataclasses import dataclass, field

from monitor.core.models import MarketAsset, Timeframe

from .models import PortfolioItem


def latest_prices(assets: list[MarketAsset]) -> dict[str, float]:
    """
    Latest price per asset symbol.

    The shortest timeframe with a snapshot wins, since its candle closed
    most recently.
    """
    prices: dict[str, float] = {}
    for asset in assets:
        for timeframe in Timeframe:
            snapshot = asset.snapshot(timeframe)
            if snapshot is not None:
                prices[asset.symbol.upper()] = snapshot.price
                break
    return prices


@dataclass
class Holding:
    """A held item valued at the current price."""

    item: PortfolioItem
    current_price: float
    priced: bool  # False when the buy price stands in for a missing quote

    @property
    def value(self) -> float:
        return self.item.value_at(self.current_price)

    @property
    def profit(self) -> float:
        return self.item.profit_at(self.current_price)

    @property
    def profit_percent(self) -> float:
        return self.item.profit_percent_at(self.current_price)


@dataclass
class AllocationSlice:
    """Share of the held value in one asset."""

    symbol: str
    value: float
    percent: float


@dataclass
class PortfolioSummary:
    """
    Totals for the whole portfolio.

    total_pnl = unrealized (held items) + realized (sold items)
    """

    holdings: list[Holding] = field(default_factory=list)
    sold: list[PortfolioItem] = field(default_factory=list)  # newest sale first
    allocation: list[AllocationSlice] = field(default_factory=list)
    total_invested: float = 0.0
    current_value: float = 0.0
    unrealized_pnl: float = 0.0
    realized_pnl: float = 0.0

    @property
    def total_pnl(self) -> float:
        return self.unrealized_pnl + self.realized_pnl

    @property
    def total_pnl_percent(self) -> float:
        """Total P&L relative to the capital still invested."""
        if self.total_invested == 0:
            return 0.0
        return self.total_pnl / self.total_invested * 100

    @classmethod
    def from_items(
        cls, items: list[PortfolioItem], prices: dict[str, float]
    ) -> "PortfolioSummary":
        """
        Value a portfolio.

        Args:
            items: Held and sold items, in display order
            prices: Latest price by asset symbol (see latest_prices)
        """
        summary = cls()
        allocation: dict[str, float] = {}

        for item in items:
            if item.is_sold:
                summary.sold.append(item)
                summary.realized_pnl += item.realized_pnl
                continue

            price = prices.get(item.asset_symbol)
            holding = Holding(
                item=item,
                current_price=price if price is not None else item.buy_price,
                priced=price is not None,
            )
            summary.holdings.append(holding)
            summary.total_invested += item.cost_basis
            summary.current_value += holding.value
            summary.unrealized_pnl += holding.profit
            allocation[item.asset_symbol] = allocation.get(item.asset_symbol, 0.0) + holding.value

        summary.sold.sort(key=lambda i: i.sell_date, reverse=True)
        total = summary.current_value
        summary.allocation = [
            AllocationSlice(symbol, value, value / total * 100 if total > 0 else 0.0)
            for symbol, value in allocation.items()
        ]
        return summary

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "total_invested": self.total_invested,
            "current_value": self.current_value,
            "unrealized_pnl": self.unrealized_pnl,
            "realized_pnl": self.realized_pnl,
            "total_pnl": self.total_pnl,
            "allocation": [
                {"symbol": s.symbol, "value": s.value, "percent": s.percent}
                for s in self.allocation
            ],
            "holdings": [
                {
                    **h.item.to_dict(),
                    "current_price": h.current_price,
                    "value": h.value,
                    "profit": h.profit,
                    "profit_percent": h.profit_percent,
                }
                for h in self.holdings
            ],
            "sold": [
                {**i.to_dict(), "profit": i.realized_pnl} for i in self.sold
            ],
        }
