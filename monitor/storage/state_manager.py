"""
Rule, Signal & Portfolio State Manager

Persists alert rules, the signal feed and portfolio positions to disk so
the monitor resumes where it left off after a restart. Dates are written
as ISO-8601 strings and parsed back to datetime on load.

Layout:
    <data_dir>/
        rules.json      - Alert rules (list)
        signals.json    - Signal feed, newest first (list)
        portfolio.json  - Portfolio positions, newest first (list)
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from monitor.alarms.models import Signal
from monitor.portfolio.models import PortfolioItem
from monitor.rules.models import AlertRule, default_rule

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StateManager:
    """
    Loads and saves rules, signals and portfolio positions as JSON.

    Callers save after every mutation; each save rewrites the whole file.
    """

    RULES_FILENAME = "rules.json"
    SIGNALS_FILENAME = "signals.json"
    PORTFOLIO_FILENAME = "portfolio.json"

    def __init__(self, data_dir: str | Path = "data"):
        """
        Initialize the state manager.

        Args:
            data_dir: Directory holding the JSON files
        """
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.rules_file = self.data_dir / self.RULES_FILENAME
        self.signals_file = self.data_dir / self.SIGNALS_FILENAME
        self.portfolio_file = self.data_dir / self.PORTFOLIO_FILENAME

    @property
    def has_saved_rules(self) -> bool:
        return self.rules_file.exists()

    def load_rules(self) -> list[AlertRule]:
        """
        Load rules from disk.

        Returns:
            Saved rules; the default rule if nothing was saved yet or the
            file cannot be read. Malformed entries are skipped.
        """
        data = self._read_list(self.rules_file)
        if data is None:
            return [default_rule()]
        return self._parse_entries(data, AlertRule.from_dict, "rule")

    def save_rules(self, rules: list[AlertRule]) -> None:
        """Write rules to disk."""
        self._write_list(self.rules_file, [r.to_dict() for r in rules])

    def load_signals(self) -> list[Signal]:
        """
        Load the signal feed from disk, newest first.

        Returns:
            Saved signals, or an empty list if none were saved or the file
            cannot be read
        """
        data = self._read_list(self.signals_file)
        if data is None:
            return []
        return self._parse_entries(data, Signal.from_dict, "signal")

    def save_signals(self, signals: list[Signal]) -> None:
        """Write signals to disk (newest first)."""
        self._write_list(self.signals_file, [s.to_dict() for s in signals])

    def load_portfolio(self) -> list[PortfolioItem]:
        """Load portfolio positions, or an empty list if none were saved."""
        data = self._read_list(self.portfolio_file)
        if data is None:
            return []
        return self._parse_entries(data, PortfolioItem.from_dict, "portfolio item")

    def save_portfolio(self, items: list[PortfolioItem]) -> None:
        """Write portfolio positions to disk."""
        self._write_list(self.portfolio_file, [item.to_dict() for item in items])

    def clear(self) -> None:
        """Remove saved rules and signals. The portfolio is left alone."""
        for path in (self.rules_file, self.signals_file):
            if path.exists():
                path.unlink()

    def _parse_entries(
        self, data: list, parse: Callable[[dict[str, Any]], T], kind: str
    ) -> list[T]:
        parsed: list[T] = []
        for entry in data:
            if not isinstance(entry, dict):
                logger.warning(f"Skipping malformed {kind} {entry!r}: not an object")
                continue
            try:
                parsed.append(parse(entry))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed {kind} {entry!r}: {e}")
        return parsed

    def _read_list(self, path: Path) -> list | None:
        if not path.exists():
            return None
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load {path.name}: {e}")
            return None
        if not isinstance(data, list):
            logger.error(f"Failed to load {path.name}: expected a list")
            return None
        return data

    def _write_list(self, path: Path, data: list) -> None:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
