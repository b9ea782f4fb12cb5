"""
Monitor Engine - The refresh pipeline and its scheduler.

Each refresh is one step:
    fetch market data → compute indicators → evaluate rules → emit signals → persist

Nothing in the step reacts to display updates; the engine runs it on a
fixed interval (run) or on demand (refresh). The last good reading of
every asset is kept so MACD crossings can be detected, even across a
cycle in which the asset could not be fetched.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from monitor.alarms import (
    AlarmCycle,
    AlarmStateMachine,
    Notification,
    NotificationDispatcher,
    Severity,
    SignalFeed,
)
from monitor.core.config import MonitorConfig
from monitor.core.models import MarketAsset
from monitor.market import MarketDataError, MarketDataService
from monitor.rules import AlertRule
from monitor.storage import StateManager

logger = logging.getLogger(__name__)


class MonitorEngine:
    """
    Live market monitor.

    Owns the rule collection and signal feed for the running process,
    persisting both through the StateManager after every change.
    """

    def __init__(
        self,
        config: MonitorConfig,
        market: MarketDataService,
        state: StateManager,
        dispatcher: NotificationDispatcher,
        machine: AlarmStateMachine | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            config: Refresh cadence and retention settings
            market: Source of each cycle's assets
            state: Persistence for rules and signals
            dispatcher: Delivery of notifications
            machine: Alarm state machine (default instance if None)
        """
        self.config = config
        self.market = market
        self.state = state
        self.dispatcher = dispatcher
        self.machine = machine or AlarmStateMachine()

        self.rules: list[AlertRule] = state.load_rules()
        self.feed = SignalFeed(state.load_signals(), cap=config.signal_retention)

        self.assets: list[MarketAsset] = []
        self._previous_assets: list[MarketAsset] | None = None
        self._running = False
        self._cycles = 0

    @property
    def cycles(self) -> int:
        """Number of completed refresh cycles."""
        return self._cycles

    async def refresh(self, now: datetime | None = None) -> AlarmCycle | None:
        """
        Run one pipeline step.

        A failed fetch notifies the user and leaves rules, signals and the
        previous-cycle assets untouched.

        Returns:
            The alarm cycle, or None if market data could not be loaded
        """
        try:
            result = await self.market.refresh()
        except MarketDataError as e:
            logger.error(f"Market data refresh failed: {e}")
            self._notify_fetch_failure()
            return None

        if result.is_empty:
            logger.error(f"Market data refresh returned no assets ({len(result.failures)} failed)")
            self._notify_fetch_failure()
            return None

        cycle = self.machine.evaluate(self.rules, result.assets, self._previous_assets, now)
        self.rules = cycle.rules

        if cycle.signals:
            self.feed.extend(cycle.signals)
            self.state.save_rules(self.rules)
            self.state.save_signals(self.feed.to_list())

        self.dispatcher.dispatch(cycle.notifications)

        self._previous_assets = self._merge_previous(result.assets)
        self.assets = result.assets
        self._cycles += 1
        return cycle

    async def run(
        self,
        iterations: int | None = None,
        on_cycle: Callable[[AlarmCycle | None], None] | None = None,
    ) -> None:
        """
        Refresh on a fixed interval until stopped.

        Args:
            iterations: Stop after this many cycles (run forever if None)
            on_cycle: Called after every refresh with its outcome
        """
        self._running = True
        logger.info(
            f"Monitor started: {len(self.rules)} rules, "
            f"refresh every {self.config.refresh_interval_seconds:g}s"
        )
        done = 0
        try:
            while self._running:
                cycle = await self.refresh()
                if on_cycle is not None:
                    on_cycle(cycle)
                done += 1
                if iterations is not None and done >= iterations:
                    break
                await asyncio.sleep(self.config.refresh_interval_seconds)
        finally:
            self._running = False
            logger.info(f"Monitor stopped after {done} refreshes")

    def stop(self) -> None:
        """Stop the run loop after the current cycle."""
        self._running = False

    # =========================================================
    # Rule management (persisted on every change)
    # =========================================================

    def add_rule(self, rule: AlertRule) -> None:
        self.rules = self.machine.add_rule(self.rules, rule)
        self.state.save_rules(self.rules)

    def update_rule(self, rule: AlertRule) -> None:
        self.rules = self.machine.update_rule(self.rules, rule)
        self.state.save_rules(self.rules)

    def delete_rule(self, rule_id: str) -> None:
        self.rules = self.machine.delete_rule(self.rules, rule_id)
        self.state.save_rules(self.rules)

    def toggle_rule(self, rule_id: str) -> None:
        self.rules = self.machine.toggle_rule(self.rules, rule_id)
        self.state.save_rules(self.rules)

    def reset_triggered(self, rule_id: str) -> None:
        self.rules = self.machine.reset_triggered(self.rules, rule_id)
        self.state.save_rules(self.rules)

    def clear_signals(self) -> None:
        self.feed.clear()
        self.state.save_signals([])

    def _merge_previous(self, assets: list[MarketAsset]) -> list[MarketAsset]:
        """Latest assets by id, keeping the last good reading of assets skipped this cycle."""
        merged = {a.id: a for a in self._previous_assets or []}
        merged.update({a.id: a for a in assets})
        return list(merged.values())

    def _notify_fetch_failure(self) -> None:
        self.dispatcher.dispatch(
            [
                Notification(
                    title="Failed to load data",
                    body="Could not fetch market data.",
                    severity=Severity.ERROR,
                )
            ]
        )
