"""
Rules Module - Alert rule models and their evaluation.

Layer 2 of the monitor: rules read indicator snapshots and report
matches; they never hold state between cycles.
"""

from .evaluator import (
    ConditionResult,
    RuleMatch,
    combine,
    evaluate_condition,
    evaluate_rule,
    resolve_selector,
)
from .models import (
    ALL_CRYPTO,
    ALL_STOCKS,
    MAX_CONDITIONS,
    AlarmState,
    AlertRule,
    ComparisonOperator,
    IndicatorType,
    Logic,
    RuleCondition,
    default_rule,
    normalize_conditions,
)

__all__ = [
    "ALL_CRYPTO",
    "ALL_STOCKS",
    "MAX_CONDITIONS",
    "AlarmState",
    "AlertRule",
    "ComparisonOperator",
    "ConditionResult",
    "IndicatorType",
    "Logic",
    "RuleCondition",
    "RuleMatch",
    "combine",
    "default_rule",
    "evaluate_condition",
    "evaluate_rule",
    "normalize_conditions",
    "resolve_selector",
]
