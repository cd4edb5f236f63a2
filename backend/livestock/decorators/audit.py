from __future__ import annotations
"""Audit logging decorator for state-changing route handlers.

Usage:

@audit_log('ORDER.CONFIRM', entity='Order', entity_id_key='id',
           diff_keys=['status'], pre_fetch=lambda a, kw: _prefetch_order(kw.get('order_id')))
def confirm_order(order_id): ...

Parameters:
  action: audit action code (e.g. ORDER.CONFIRM)
  entity: optional entity label (Order, Subscription, Farmer)
  entity_id_key: key in the returned JSON object whose value becomes entity_id.
  entity_id_arg: view keyword argument used for entity_id when the key is absent.
  meta_keys: keys projected from the returned JSON into meta.
  diff_keys / pre_fetch: pre_fetch(args, kwargs) snapshots the entity before the
    view runs; differing diff_keys are recorded under meta['changes'].

Only successful responses (status < 400) are audited. Audit failures are logged
and never change the view's response.
"""
from functools import wraps
from typing import Any, Callable, Dict, Iterable, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from livestock import get_db
from livestock.services.audit import add_audit


def _extract_payload(rv: Any):
    """Return (data, status) for the common Flask return shapes."""
    if isinstance(rv, tuple) and rv:
        status = rv[1] if len(rv) > 1 and isinstance(rv[1], int) else 200
        return rv[0], status
    return rv, 200


def audit_log(
    action: str,
    *,
    entity: Optional[str] = None,
    entity_id_key: Optional[str] = None,
    entity_id_arg: Optional[str] = None,
    meta_keys: Optional[Iterable[str]] = None,
    diff_keys: Optional[Iterable[str]] = None,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before = pre_fetch(args, kwargs) if (diff_keys and pre_fetch) else None
            rv = fn(*args, **kwargs)
            data, status = _extract_payload(rv)
            if status >= 400:
                return rv
            if not isinstance(data, dict):
                data = {}
            entity_id = data.get(entity_id_key) if entity_id_key else None
            if entity_id is None and entity_id_arg:
                entity_id = kwargs.get(entity_id_arg)
            meta = {k: data.get(k) for k in (meta_keys or ()) if k in data}
            if diff_keys and before:
                changes = {
                    k: {'before': before.get(k), 'after': data.get(k)}
                    for k in diff_keys
                    if k in before and k in data and before.get(k) != data.get(k)
                }
                if changes:
                    meta['changes'] = changes
            try:
                add_audit(action, entity, entity_id, meta)
                get_db().commit()
            except SQLAlchemyError:
                get_db().rollback()
                current_app.logger.exception('Audit write failed for %s', action)
            return rv
        return wrapper
    return outer
