"""
Alarm State Machine - Rule lifecycle and signal emission.

States per rule:
    INACTIVE (active=False)
    ARMED    (active, not triggered)  --match-->  FIRED
    FIRED    (active, triggered)      --reset-->  ARMED
    DELETED  (removed from the collection, from any state)

The machine holds no rule state of its own: every operation takes the
current rule collection and returns an updated one, leaving persistence
to the caller.

A rule carries a single triggered flag. Under a broad selector
("all crypto"), every asset that matches in the firing cycle gets a
signal, then the whole rule is FIRED and no other asset can fire it
until reset.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from monitor.core.models import MarketAsset
from monitor.rules.evaluator import RuleMatch, evaluate_rule
from monitor.rules.models import AlarmState, AlertRule

from .models import Notification, Severity, Signal, classify_condition

logger = logging.getLogger(__name__)


@dataclass
class AlarmCycle:
    """Outcome of one evaluation cycle."""

    rules: list[AlertRule]
    signals: list[Signal] = field(default_factory=list)
    notifications: list[Notification] = field(default_factory=list)

    @property
    def fired_rule_ids(self) -> list[str]:
        """Ids of rules that fired in this cycle, in rule order."""
        seen: list[str] = []
        for signal in self.signals:
            if signal.rule_id not in seen:
                seen.append(signal.rule_id)
        return seen


class AlarmStateMachine:
    """
    Drives alert rules through their lifecycle.

    Usage:
        machine = AlarmStateMachine()
        cycle = machine.evaluate(rules, current_assets, previous_assets)
        rules = cycle.rules
        feed.extend(cycle.signals)
    """

    def evaluate(
        self,
        rules: list[AlertRule],
        current_assets: list[MarketAsset],
        previous_assets: list[MarketAsset] | None = None,
        now: datetime | None = None,
    ) -> AlarmCycle:
        """
        Evaluate every ARMED rule against one refresh cycle.

        Args:
            rules: Current rule collection
            current_assets: Assets from this refresh cycle
            previous_assets: Assets from the previous cycle (None on first run)
            now: Timestamp for fired rules and signals (default: datetime.now())

        Returns:
            AlarmCycle with the updated rules plus emitted signals and notifications
        """
        now = now or datetime.now()
        cycle = AlarmCycle(rules=[])

        for rule in rules:
            if rule.state is not AlarmState.ARMED:
                cycle.rules.append(rule)
                continue

            matches = [
                m for m in evaluate_rule(rule, current_assets, previous_assets) if m.matched
            ]
            if not matches:
                cycle.rules.append(rule)
                continue

            for match in matches:
                signal, notification = self._emit(rule, match, now)
                cycle.signals.append(signal)
                cycle.notifications.append(notification)

            fired = replace(
                rule,
                triggered=True,
                triggered_at=now,
                triggered_value=matches[-1].observed_value,
            )
            logger.info(
                f"Rule {rule.id} fired for {', '.join(m.asset.symbol for m in matches)} "
                f"on {rule.timeframe.value} ({rule.describe()})"
            )
            cycle.rules.append(fired)

        return cycle

    def _emit(
        self, rule: AlertRule, match: RuleMatch, now: datetime
    ) -> tuple[Signal, Notification]:
        asset = match.asset.info
        index = match.first_matched_index
        condition = rule.conditions[index] if index is not None else None
        message = f"{asset.symbol}: signal triggered on {rule.timeframe.value}"

        signal = Signal(
            rule_id=rule.id,
            asset_symbol=asset.symbol,
            asset_name=asset.name,
            timeframe=rule.timeframe,
            message=message,
            timestamp=now,
            classification=classify_condition(condition),
        )
        notification = Notification(
            title=f"Alert: {asset.symbol}",
            body=message,
            severity=Severity.WARNING,
        )
        return signal, notification

    # =========================================================
    # Lifecycle operations
    # =========================================================

    def add_rule(self, rules: list[AlertRule], rule: AlertRule) -> list[AlertRule]:
        """Append a new rule. Raises ValueError if the id is already used."""
        if any(r.id == rule.id for r in rules):
            raise ValueError(f"Rule id already exists: {rule.id}")
        return [*rules, rule]

    def update_rule(self, rules: list[AlertRule], rule: AlertRule) -> list[AlertRule]:
        """
        Replace a rule's definition, keeping its active flag.

        An edited rule starts a new episode, so its trigger is cleared.
        """
        existing = self._find(rules, rule.id)
        updated = replace(
            rule,
            active=existing.active,
            triggered=False,
            triggered_at=None,
            triggered_value=None,
        )
        return [updated if r.id == rule.id else r for r in rules]

    def delete_rule(self, rules: list[AlertRule], rule_id: str) -> list[AlertRule]:
        """Remove a rule permanently."""
        self._find(rules, rule_id)
        return [r for r in rules if r.id != rule_id]

    def toggle_rule(self, rules: list[AlertRule], rule_id: str) -> list[AlertRule]:
        """Flip a rule's active flag. Suspending does not clear a trigger."""
        self._find(rules, rule_id)
        return [replace(r, active=not r.active) if r.id == rule_id else r for r in rules]

    def reset_triggered(self, rules: list[AlertRule], rule_id: str) -> list[AlertRule]:
        """Return a FIRED rule to ARMED so it can fire again."""
        self._find(rules, rule_id)
        return [
            replace(r, triggered=False, triggered_at=None, triggered_value=None)
            if r.id == rule_id
            else r
            for r in rules
        ]

    @staticmethod
    def state_of(rules: list[AlertRule], rule_id: str) -> AlarmState:
        """State of a rule by id; DELETED if it is no longer in the collection."""
        for rule in rules:
            if rule.id == rule_id:
                return rule.state
        return AlarmState.DELETED

    @staticmethod
    def _find(rules: list[AlertRule], rule_id: str) -> AlertRule:
        for rule in rules:
            if rule.id == rule_id:
                return rule
        raise KeyError(f"Unknown rule id: {rule_id}")
