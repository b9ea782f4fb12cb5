"""
Live Monitoring - Scheduled refresh pipeline.

Usage:
    monitor watch --interval 60
"""

from monitor.live.engine import MonitorEngine

__all__ = ["MonitorEngine"]
