from __future__ import annotations
from typing import Optional, Set, Tuple
from flask import abort
from flask_jwt_extended import get_jwt, get_jwt_identity

from livestock.models.accounts import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_FARMER


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def has_permissions(*codes: str) -> bool:
    perms = current_permissions()
    return all(c in perms for c in codes)


def current_actor() -> Tuple[Optional[str], Optional[int]]:
    """(role, account id) of the authenticated caller."""
    claims = get_jwt()
    ident = get_jwt_identity()
    return claims.get('role'), int(ident) if ident is not None else None


def assert_order_party(order, *roles: str):
    """Caller must be the order's customer or farmer (admins pass), optionally restricted to roles."""
    role, actor_id = current_actor()
    if role == ROLE_ADMIN:
        return
    if roles and role not in roles:
        abort(403, description='Role not allowed')
    if role == ROLE_FARMER and order.farmer_id == actor_id:
        return
    if role == ROLE_CUSTOMER and order.customer_id == actor_id:
        return
    abort(403, description='Not a party to this order')


def assert_owns_record(owner_id: int, owner_role: str):
    role, actor_id = current_actor()
    if role == ROLE_ADMIN:
        return
    if role != owner_role or actor_id != owner_id:
        abort(403, description='Record ownership required')
