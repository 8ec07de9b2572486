"""
Monitoring Module
Prometheus metrics for acquisition, sessions and scheduled ticks
"""

from .prometheus_metrics import TrackerMetrics

__all__ = ["TrackerMetrics"]
