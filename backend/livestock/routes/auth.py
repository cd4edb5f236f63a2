from __future__ import annotations
from flask import Blueprint, request, abort
from flask_jwt_extended import create_access_token, jwt_required

from livestock.models.accounts import ALL_ROLES, ROLE_FARMER, ROLE_CUSTOMER
from livestock.services.accounts import register_account, authenticate, token_claims, find_account
from livestock.services.policy import current_actor
from livestock.utils.validation import require_fields, validate_choice

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/register/<role>')
def register(role: str):
    validate_choice(role, (ROLE_FARMER, ROLE_CUSTOMER), 'role')
    data = request.json or {}
    require_fields(data, 'name', 'email', 'password')
    account = register_account(
        role, data['name'], data['email'], data['password'],
        phone=data.get('phone'), location=data.get('location'), address=data.get('address'),
    )
    if account is None:
        abort(409, description='email already registered')
    return _account_json(account), 201


@auth_bp.post('/login')
def login():
    data = request.json or {}
    require_fields(data, 'role', 'email', 'password')
    role = validate_choice(data['role'], ALL_ROLES, 'role')
    account = authenticate(role, data['email'], data['password'])
    if account is None:
        abort(401, description='invalid credentials')
    # JWT identity must be a string (flask-jwt-extended v4 requirement)
    token = create_access_token(identity=str(account.id), additional_claims=token_claims(account))
    return {'access_token': token, 'role': role, 'id': account.id}


@auth_bp.get('/me')
@jwt_required()
def me():
    role, account_id = current_actor()
    account = find_account(role, account_id)
    if account is None:
        abort(404)
    body = _account_json(account)
    body['perms'] = token_claims(account)['perms']
    return body


def _account_json(account):
    body = {
        'id': account.id,
        'role': account.role,
        'name': account.name,
        'email': account.email,
    }
    if account.role == ROLE_FARMER:
        body['token_count'] = account.token_count
    for field in ('phone', 'location', 'address'):
        if hasattr(account, field):
            body[field] = getattr(account, field)
    return body
