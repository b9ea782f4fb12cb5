"""
Data models for alert rules.

A rule watches one asset (or every crypto / every stock asset) on one
timeframe and fires when its conditions match. Rules persisted by older
versions carry a single indicator/operator/threshold triple instead of a
conditions list; normalize_conditions() folds both shapes into one.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from monitor.core.models import Timeframe, parse_timestamp

MAX_CONDITIONS = 3

ALL_CRYPTO = "ALL_CRYPTO"
ALL_STOCKS = "ALL_STOCKS"


class IndicatorType(Enum):
    """Indicator a condition reads."""

    RSI = "RSI"
    MACD = "MACD"


class ComparisonOperator(Enum):
    """How a condition compares the indicator reading."""

    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    CROSS_ABOVE = "CROSS_ABOVE"  # MACD histogram crosses from below 0 to 0 or above
    CROSS_BELOW = "CROSS_BELOW"  # MACD histogram crosses from above 0 to 0 or below

    @property
    def is_cross(self) -> bool:
        return self in (ComparisonOperator.CROSS_ABOVE, ComparisonOperator.CROSS_BELOW)


class Logic(Enum):
    """How multiple conditions combine."""

    AND = "AND"
    OR = "OR"


class AlarmState(Enum):
    """Lifecycle state of a rule."""

    INACTIVE = "INACTIVE"  # active=False
    ARMED = "ARMED"  # active, waiting for a match
    FIRED = "FIRED"  # active, matched, waiting for reset
    DELETED = "DELETED"  # removed from the collection


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class RuleCondition:
    """A single indicator comparison."""

    indicator: IndicatorType
    operator: ComparisonOperator
    threshold: float | None = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        """Validate the condition."""
        if self.operator.is_cross and self.indicator is not IndicatorType.MACD:
            raise ValueError(f"{self.operator.value} is only supported for MACD")

    def describe(self) -> str:
        """Human readable form, e.g. 'RSI < 30' or 'MACD crosses above 0'."""
        symbols = {
            ComparisonOperator.GREATER_THAN: ">",
            ComparisonOperator.LESS_THAN: "<",
        }
        if self.operator.is_cross:
            direction = "above" if self.operator is ComparisonOperator.CROSS_ABOVE else "below"
            return f"{self.indicator.value} crosses {direction} 0"
        threshold = "default" if self.threshold is None else f"{self.threshold:g}"
        return f"{self.indicator.value} {symbols[self.operator]} {threshold}"

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "indicator": self.indicator.value,
            "operator": self.operator.value,
            "threshold": self.threshold,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RuleCondition":
        """Create from dictionary."""
        threshold = data.get("threshold")
        return cls(
            indicator=IndicatorType(data["indicator"]),
            operator=ComparisonOperator(data["operator"]),
            threshold=float(threshold) if threshold is not None else None,
            id=str(data.get("id") or _new_id()),
        )


def normalize_conditions(data: dict) -> tuple[list[RuleCondition], Logic]:
    """
    Fold the legacy single-condition shape and the multi-condition shape
    into a non-empty conditions list plus its combination logic.

    Legacy: {"indicator": ..., "operator": ..., "threshold": ...}
    Multi:  {"conditions": [...], "logic": "AND" | "OR"}

    Raises:
        ValueError: If neither shape is present
    """
    raw_conditions = data.get("conditions") or []
    if raw_conditions:
        conditions = [RuleCondition.from_dict(c) for c in raw_conditions]
    elif data.get("indicator") and data.get("operator"):
        conditions = [
            RuleCondition.from_dict(
                {
                    "id": "legacy",
                    "indicator": data["indicator"],
                    "operator": data["operator"],
                    "threshold": data.get("threshold"),
                }
            )
        ]
    else:
        raise ValueError("Rule has neither conditions nor a legacy indicator/operator")

    logic = Logic(data.get("logic") or Logic.AND.value)
    return conditions, logic


@dataclass(frozen=True)
class AlertRule:
    """
    A user-defined alert.

    asset_selector is an asset id ("btc") or one of ALL_CRYPTO / ALL_STOCKS.
    Rules are immutable; lifecycle changes produce a new instance
    (see monitor.alarms.state_machine).
    """

    asset_selector: str
    timeframe: Timeframe
    conditions: tuple[RuleCondition, ...]
    logic: Logic = Logic.AND
    active: bool = True
    triggered: bool = False
    triggered_at: datetime | None = None
    triggered_value: float | None = None
    id: str = field(default_factory=_new_id)

    def __post_init__(self) -> None:
        """Validate rule shape."""
        if not self.conditions:
            raise ValueError("A rule needs at least one condition")
        if len(self.conditions) > MAX_CONDITIONS:
            raise ValueError(f"A rule supports at most {MAX_CONDITIONS} conditions")
        if not self.asset_selector:
            raise ValueError("asset_selector is required")
        # Accept lists from callers while keeping the instance hashable
        if not isinstance(self.conditions, tuple):
            object.__setattr__(self, "conditions", tuple(self.conditions))

    @property
    def state(self) -> AlarmState:
        """Current lifecycle state (DELETED is never held by a live rule)."""
        if not self.active:
            return AlarmState.INACTIVE
        if self.triggered:
            return AlarmState.FIRED
        return AlarmState.ARMED

    @property
    def is_broad(self) -> bool:
        """True if the rule covers a whole market rather than one asset."""
        return self.asset_selector in (ALL_CRYPTO, ALL_STOCKS)

    def describe(self) -> str:
        """Human readable summary of the conditions."""
        joiner = f" {self.logic.value} "
        return joiner.join(c.describe() for c in self.conditions)

    def to_dict(self) -> dict:
        """
        Convert to dictionary for JSON serialization.

        The first condition is duplicated into the legacy fields so older
        readers still understand the rule.
        """
        first = self.conditions[0]
        return {
            "id": self.id,
            "asset_id": self.asset_selector,
            "timeframe": self.timeframe.value,
            "indicator": first.indicator.value,
            "operator": first.operator.value,
            "threshold": first.threshold,
            "conditions": [c.to_dict() for c in self.conditions],
            "logic": self.logic.value,
            "active": self.active,
            "triggered": self.triggered,
            "triggered_at": self.triggered_at.isoformat() if self.triggered_at else None,
            "triggered_value": self.triggered_value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AlertRule":
        """Create from dictionary, accepting both legacy and multi-condition shapes."""
        conditions, logic = normalize_conditions(data)
        triggered_at = data.get("triggered_at")
        triggered_value = data.get("triggered_value")
        return cls(
            id=str(data["id"]),
            asset_selector=data.get("asset_id") or data["asset_selector"],
            timeframe=Timeframe(data["timeframe"]),
            conditions=tuple(conditions),
            logic=logic,
            active=bool(data.get("active", True)),
            triggered=bool(data.get("triggered", False)),
            triggered_at=parse_timestamp(triggered_at) if triggered_at else None,
            triggered_value=float(triggered_value) if triggered_value is not None else None,
        )


def default_rule() -> AlertRule:
    """The rule a fresh installation starts with: any crypto with 4h RSI below 30."""
    return AlertRule(
        id="1",
        asset_selector=ALL_CRYPTO,
        timeframe=Timeframe.H4,
        conditions=(
            RuleCondition(IndicatorType.RSI, ComparisonOperator.LESS_THAN, 30.0, id="legacy"),
        ),
    )
