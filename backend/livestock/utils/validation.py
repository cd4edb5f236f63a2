from __future__ import annotations
"""Reusable validation helpers for request payloads and domain values.

Keeps the boundary checks in one place so routes share consistent 400 semantics
while the domain models share the same notion of "positive integer".
"""
from typing import Any, Iterable, Optional
from flask import abort
from werkzeug.exceptions import default_exceptions


def is_positive_int(value: Any) -> bool:
    """True for real ints > 0 (bools are rejected even though they subclass int)."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_choice(value: Optional[str], allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that value is inside allowed.

    Returns the value (to enable inline usage) or aborts with 400.
    """
    if value not in set(allowed):
        abort(400, description=f"{field_name} invalid")
    return value


def require_fields(data: dict, *names: str):
    missing = [n for n in names if data.get(n) in (None, '')]
    if missing:
        abort(400, description=f"{', '.join(missing)} required")


def coerce_int(value: Any, field_name: str) -> int:
    """Accept ints, whole-number floats and integer strings; anything fractional is a 400."""
    if isinstance(value, bool):
        abort(400, description=f'{field_name} must be int')
    if isinstance(value, float):
        if not value.is_integer():
            abort(400, description=f'{field_name} must be int')
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        abort(400, description=f'{field_name} must be int')


def abort_with(code: int, description: str, **extra):
    """Abort like ``flask.abort`` but carry extra keys into the JSON error body."""
    exc = default_exceptions[code](description=description)
    exc.extra = extra
    raise exc

__all__ = ['is_positive_int', 'validate_choice', 'require_fields', 'coerce_int', 'abort_with']
