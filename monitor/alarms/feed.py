"""
Signal Feed - Bounded, newest-first log of emitted signals.
"""

from collections import deque
from collections.abc import Iterable, Iterator

from .models import Signal

DEFAULT_SIGNAL_RETENTION = 50


class SignalFeed:
    """
    Keeps the most recent signals, newest first.

    When the feed is full, pushing a signal evicts the oldest one.
    """

    def __init__(
        self,
        signals: Iterable[Signal] = (),
        cap: int = DEFAULT_SIGNAL_RETENTION,
    ) -> None:
        """
        Initialize the feed.

        Args:
            signals: Existing signals, newest first (extra ones beyond cap are dropped)
            cap: Maximum number of signals kept
        """
        if cap < 1:
            raise ValueError("cap must be at least 1")
        self.cap = cap
        self._signals: deque[Signal] = deque(list(signals)[:cap], maxlen=cap)

    def push(self, signal: Signal) -> None:
        """Add a signal at the front, evicting the oldest if full."""
        self._signals.appendleft(signal)

    def extend(self, signals: Iterable[Signal]) -> None:
        """Push signals in order, so the last one ends up newest."""
        for signal in signals:
            self.push(signal)

    def clear(self) -> None:
        self._signals.clear()

    def for_rule(self, rule_id: str) -> list[Signal]:
        """Signals emitted by one rule, newest first."""
        return [s for s in self._signals if s.rule_id == rule_id]

    def to_list(self) -> list[Signal]:
        return list(self._signals)

    def __iter__(self) -> Iterator[Signal]:
        return iter(self._signals)

    def __len__(self) -> int:
        return len(self._signals)
