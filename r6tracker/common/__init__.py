"""Shared helpers: HTTP policy, parsing, browser handling and logging."""
