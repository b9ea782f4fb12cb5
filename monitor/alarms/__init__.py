"""
Alarms Module - Rule lifecycle, signal records and notifications.

Layer 3 of the monitor: turns rule matches into signals, debounced
per rule until the user resets it.
"""

from .feed import DEFAULT_SIGNAL_RETENTION, SignalFeed
from .models import (
    Notification,
    Severity,
    Signal,
    SignalClassification,
    classify_condition,
)
from .notifier import ConsoleNotifier, LogNotifier, NotificationDispatcher, Notifier
from .state_machine import AlarmCycle, AlarmStateMachine

__all__ = [
    "DEFAULT_SIGNAL_RETENTION",
    "AlarmCycle",
    "AlarmStateMachine",
    "ConsoleNotifier",
    "LogNotifier",
    "Notification",
    "NotificationDispatcher",
    "Notifier",
    "Severity",
    "Signal",
    "SignalClassification",
    "SignalFeed",
    "classify_condition",
]
