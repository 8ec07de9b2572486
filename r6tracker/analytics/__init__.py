"""Date resolution, window math, aggregation and leaderboards."""

from .aggregation import aggregate
from .dates import resolve_label
from .rankings import RANKING_METRICS, build_rankings
from .windows import WINDOW_LABELS, WindowKind, resolve_window

__all__ = [
    "aggregate",
    "resolve_label",
    "RANKING_METRICS",
    "build_rankings",
    "WINDOW_LABELS",
    "WindowKind",
    "resolve_window",
]
