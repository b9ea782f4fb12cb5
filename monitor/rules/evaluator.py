"""
Rule Evaluator - Checks alert rule conditions against indicator snapshots.

Evaluation is pure: given the current (and optionally previous) snapshot
of an asset, it reports whether each condition holds and the value that
was observed, without touching rule state.
"""

from dataclasses import dataclass, field

from monitor.core.models import AssetSnapshot, AssetType, MarketAsset
from monitor.rules.models import (
    ALL_CRYPTO,
    ALL_STOCKS,
    AlertRule,
    ComparisonOperator,
    IndicatorType,
    Logic,
    RuleCondition,
)

# Thresholds used when a condition leaves its threshold unset
DEFAULT_RSI_UPPER = 70.0
DEFAULT_RSI_LOWER = 30.0
DEFAULT_MACD_THRESHOLD = 0.0


@dataclass
class ConditionResult:
    """Outcome of a single condition check."""

    matched: bool
    observed_value: float | None = None


@dataclass
class RuleMatch:
    """Outcome of a rule for one asset."""

    asset: MarketAsset
    matched: bool
    observed_value: float | None = None
    results: list[ConditionResult] = field(default_factory=list)

    @property
    def first_matched_index(self) -> int | None:
        """Index of the first condition that matched, if any."""
        for i, result in enumerate(self.results):
            if result.matched:
                return i
        return None


def evaluate_condition(
    condition: RuleCondition,
    current: AssetSnapshot,
    previous: AssetSnapshot | None = None,
) -> ConditionResult:
    """
    Check one condition against the current snapshot.

    RSI conditions compare current.rsi with the threshold (default 70 for
    GREATER_THAN, 30 for LESS_THAN). MACD conditions compare the histogram
    with the threshold (default 0); CROSS_ABOVE / CROSS_BELOW compare the
    previous and current histogram and never match without a previous
    snapshot.

    Args:
        condition: Condition to check
        current: Snapshot from this refresh cycle
        previous: Snapshot from the previous cycle, if any

    Returns:
        ConditionResult with the observed value populated even when unmatched
    """
    if condition.indicator is IndicatorType.RSI:
        value = current.rsi
        if condition.operator is ComparisonOperator.LESS_THAN:
            threshold = _threshold(condition, DEFAULT_RSI_LOWER)
            return ConditionResult(value < threshold, value)
        if condition.operator is ComparisonOperator.GREATER_THAN:
            threshold = _threshold(condition, DEFAULT_RSI_UPPER)
            return ConditionResult(value > threshold, value)
        return ConditionResult(False, value)

    histogram = current.macd.histogram
    operator = condition.operator

    if operator is ComparisonOperator.CROSS_ABOVE:
        matched = previous is not None and previous.macd.histogram < 0 and histogram >= 0
        return ConditionResult(matched, histogram)
    if operator is ComparisonOperator.CROSS_BELOW:
        matched = previous is not None and previous.macd.histogram > 0 and histogram <= 0
        return ConditionResult(matched, histogram)

    threshold = _threshold(condition, DEFAULT_MACD_THRESHOLD)
    if operator is ComparisonOperator.GREATER_THAN:
        return ConditionResult(histogram > threshold, histogram)
    return ConditionResult(histogram < threshold, histogram)


def combine(results: list[ConditionResult], logic: Logic) -> tuple[bool, float | None]:
    """
    Combine condition results.

    AND needs every condition, OR at least one. The reported value is
    the one from the first matched condition in list order.

    Returns:
        (matched, observed_value) - value is None when nothing matched
    """
    if logic is Logic.OR:
        matched = any(r.matched for r in results)
    else:
        matched = bool(results) and all(r.matched for r in results)

    if not matched:
        return False, None

    value = next(r.observed_value for r in results if r.matched)
    return True, value


def resolve_selector(selector: str, assets: list[MarketAsset]) -> list[MarketAsset]:
    """
    Resolve a rule's asset selector against the current asset list.

    ALL_CRYPTO selects CRYPTO assets only (the gold token is a COMMODITY),
    ALL_STOCKS selects STOCK assets, anything else is an asset id.
    """
    if selector == ALL_CRYPTO:
        return [a for a in assets if a.info.asset_type is AssetType.CRYPTO]
    if selector == ALL_STOCKS:
        return [a for a in assets if a.info.asset_type is AssetType.STOCK]
    return [a for a in assets if a.id == selector]


def evaluate_rule(
    rule: AlertRule,
    current_assets: list[MarketAsset],
    previous_assets: list[MarketAsset] | None = None,
) -> list[RuleMatch]:
    """
    Evaluate a rule for every asset its selector resolves to.

    Assets without a snapshot on the rule's timeframe are skipped.
    The previous snapshot is matched by asset id.

    Args:
        rule: Rule to evaluate (its active/triggered flags are ignored here)
        current_assets: Assets from this refresh cycle
        previous_assets: Assets from the previous cycle, if any

    Returns:
        One RuleMatch per evaluated asset, in asset order
    """
    previous_by_id = {a.id: a for a in previous_assets or []}
    matches: list[RuleMatch] = []

    for asset in resolve_selector(rule.asset_selector, current_assets):
        current = asset.snapshot(rule.timeframe)
        if current is None:
            continue

        prev_asset = previous_by_id.get(asset.id)
        previous = prev_asset.snapshot(rule.timeframe) if prev_asset else None

        results = [evaluate_condition(c, current, previous) for c in rule.conditions]
        matched, value = combine(results, rule.logic)
        if not matched:
            # Surface the first reading for display even without a match
            value = results[0].observed_value if results else None

        matches.append(
            RuleMatch(asset=asset, matched=matched, observed_value=value, results=results)
        )

    return matches


def _threshold(condition: RuleCondition, default: float) -> float:
    return condition.threshold if condition.threshold is not None else default
