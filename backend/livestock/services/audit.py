from __future__ import annotations
from typing import Any, Dict, Optional
from flask_jwt_extended import get_jwt, get_jwt_identity
from livestock import get_db
from livestock.models.audit import AuditLog


def add_audit(action: str, entity: Optional[str] = None, entity_id: Optional[str] = None, meta: Optional[Dict[str, Any]] = None):
    """Persist an audit log entry within the current DB session.

    Parameters:
      action: short action code e.g. ORDER.CONFIRM, SUB.APPROVE, TOKEN.SPEND
      entity: optional entity name (Order, Subscription, Farmer)
      entity_id: optional primary key string
      meta: additional JSON-safe dictionary (will be shallow copied)
    """
    session = get_db()
    role = None
    actor = None
    try:
        role = (get_jwt() or {}).get('role')
        ident = get_jwt_identity()
        actor = int(ident) if ident is not None else None
    except RuntimeError:
        pass  # no JWT context (scripts, direct service calls)
    log = AuditLog(
        actor_role=role,
        actor_id=actor or 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        meta=dict(meta or {}),
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log
