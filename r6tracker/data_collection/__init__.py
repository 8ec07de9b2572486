"""Acquisition of player pages: candidate targets, session, fetch, extraction."""

from .candidates import resolve_candidates
from .collector import TrackerCollector
from .fetcher import ResilientFetcher
from .session import SessionManager

__all__ = ["resolve_candidates", "TrackerCollector", "ResilientFetcher", "SessionManager"]
