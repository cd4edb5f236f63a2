from __future__ import annotations
from typing import Optional
from flask import current_app
from sqlalchemy import select

from livestock import get_db
from livestock.models.accounts import ACCOUNT_MODELS, Admin, ROLE_FARMER, ROLE_CUSTOMER
from livestock.constants.permissions import permissions_for_role
from livestock.utils.clock import app_clock


def find_account(role: str, account_id: int):
    model = ACCOUNT_MODELS.get(role)
    if model is None or account_id is None:
        return None
    return get_db().get(model, account_id)


def find_by_email(role: str, email: str):
    model = ACCOUNT_MODELS.get(role)
    if model is None:
        return None
    return get_db().execute(select(model).where(model.email == email)).scalar_one_or_none()


def register_account(role: str, name: str, email: str, password: str, **profile):
    """Create a farmer or customer; returns None when the email is already taken."""
    if role not in (ROLE_FARMER, ROLE_CUSTOMER):
        raise ValueError(f'cannot self-register role {role}')
    if find_by_email(role, email) is not None:
        return None
    session = get_db()
    model = ACCOUNT_MODELS[role]
    fields = {k: v for k, v in profile.items() if k in ('phone', 'location', 'address') and v}
    account = model(name=name, email=email, date_joined=app_clock()(), **fields)
    account.set_password(password)
    session.add(account)
    session.commit()
    current_app.logger.info('Registered %s account %s', role, account.id)
    return account


def authenticate(role: str, email: str, password: str):
    account = find_by_email(role, email)
    if account is None or not account.verify_password(password):
        return None
    if getattr(account, 'is_active', True) is False:
        return None
    if isinstance(account, Admin):
        account.last_login_at = app_clock()()
        get_db().commit()
    return account


def token_claims(account) -> dict:
    return {
        'role': account.role,
        'perms': sorted(permissions_for_role(account.role)),
        'name': account.name,
    }


def ensure_default_admin(email: str, password: str, name: str = 'Administrator') -> Optional[Admin]:
    """Create the bootstrap admin if missing. Returns the new admin, or None when one already exists."""
    session = get_db()
    if session.execute(select(Admin).where(Admin.email == email)).scalar_one_or_none():
        return None
    admin = Admin(name=name, email=email, created_at=app_clock()())
    admin.set_password(password)
    session.add(admin)
    session.flush()
    current_app.logger.info('Created default admin %s', email)
    return admin

__all__ = [
    'find_account', 'find_by_email', 'register_account', 'authenticate', 'token_claims',
    'ensure_default_admin',
]
