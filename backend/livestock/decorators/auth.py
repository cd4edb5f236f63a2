from functools import wraps
from flask import abort
from flask_jwt_extended import verify_jwt_in_request
from livestock.services.policy import has_permissions, current_actor


def require_permissions(*codes: str, roles: tuple = ()):
    """Verify the bearer token, then require every permission code (and one of ``roles`` if given)."""
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if not has_permissions(*codes):
                abort(403, description='Missing permission')
            if roles and current_actor()[0] not in roles:
                abort(403, description='Role not allowed')
            return fn(*args, **kwargs)
        return wrapper
    return outer
