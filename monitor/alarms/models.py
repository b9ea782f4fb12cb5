"""
Data models for alarm output.

Signals are the permanent record of a rule firing; notifications are
the transient message handed to whatever displays alerts.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from monitor.core.models import Timeframe, parse_timestamp
from monitor.rules.models import ComparisonOperator, IndicatorType, RuleCondition


class SignalClassification(Enum):
    """Market direction a signal points to."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class Severity(Enum):
    """Notification severity, mapped by the display layer to styling."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


def classify_condition(condition: RuleCondition | None) -> SignalClassification:
    """
    Direction implied by a matched condition.

    Oversold RSI and a rising MACD histogram read as bullish,
    overbought RSI and a falling histogram as bearish.
    """
    if condition is None:
        return SignalClassification.NEUTRAL

    op = condition.operator
    if condition.indicator is IndicatorType.RSI:
        if op is ComparisonOperator.LESS_THAN:
            return SignalClassification.BULLISH
        if op is ComparisonOperator.GREATER_THAN:
            return SignalClassification.BEARISH
        return SignalClassification.NEUTRAL

    if op in (ComparisonOperator.CROSS_ABOVE, ComparisonOperator.GREATER_THAN):
        return SignalClassification.BULLISH
    return SignalClassification.BEARISH


@dataclass(frozen=True)
class Signal:
    """
    Immutable record of a rule trigger for one asset.

    Created by the alarm state machine, never mutated.
    """

    rule_id: str
    asset_symbol: str
    asset_name: str
    timeframe: Timeframe
    message: str
    timestamp: datetime
    classification: SignalClassification = SignalClassification.NEUTRAL
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def is_bullish(self) -> bool:
        return self.classification is SignalClassification.BULLISH

    @property
    def is_bearish(self) -> bool:
        return self.classification is SignalClassification.BEARISH

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "rule_id": self.rule_id,
            "asset_symbol": self.asset_symbol,
            "asset_name": self.asset_name,
            "timeframe": self.timeframe.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "type": self.classification.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Signal":
        """Create from dictionary."""
        return cls(
            id=str(data["id"]),
            rule_id=str(data["rule_id"]),
            asset_symbol=data["asset_symbol"],
            asset_name=data.get("asset_name", data["asset_symbol"]),
            timeframe=Timeframe(data["timeframe"]),
            message=data["message"],
            timestamp=parse_timestamp(data["timestamp"]),
            classification=SignalClassification(data.get("type", "NEUTRAL")),
        )


@dataclass(frozen=True)
class Notification:
    """A message for the notification layer (toast, desktop notification, log)."""

    title: str
    body: str
    severity: Severity = Severity.INFO
