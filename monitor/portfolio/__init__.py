"""
Portfolio Module - Positions and their P&L.

Tracks bought and sold positions and values them against the prices of
the latest refresh.
"""

from .models import PortfolioItem, parse_date
from .summary import AllocationSlice, Holding, PortfolioSummary, latest_prices
from .tracker import PortfolioTracker

__all__ = [
    "AllocationSlice",
    "Holding",
    "PortfolioItem",
    "PortfolioSummary",
    "PortfolioTracker",
    "latest_prices",
    "parse_date",
]
