from __future__ import annotations
"""Injectable time source.

Lifecycle timestamps (order dates, subscription updates, ledger entries) are
taken from a ``Clock`` instead of reading the wall clock inline, so a test can
pin "now" to a known value.
"""
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime) -> Clock:
    """Return a clock that always reports ``moment``."""
    def _clock() -> datetime:
        return moment
    return _clock


def app_clock() -> Clock:
    """Clock configured on the current Flask app (falls back to UTC wall clock)."""
    from flask import current_app, has_app_context
    if has_app_context():
        return current_app.config.get('CLOCK') or utc_now
    return utc_now

__all__ = ['Clock', 'utc_now', 'fixed_clock', 'app_clock']
