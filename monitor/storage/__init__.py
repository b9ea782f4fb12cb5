"""
Storage - JSON persistence for alert rules, signals and portfolio positions.
"""

from monitor.storage.state_manager import StateManager

__all__ = ["StateManager"]
