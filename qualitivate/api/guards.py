from functools import wraps

from flask import current_app
from flask_jwt_extended import current_user, get_jwt_identity, jwt_required, verify_jwt_in_request

from qualitivate.errors import AuthorizationError


def current_actor():
    """The authenticated caller as an access-policy Actor."""
    return current_user.as_actor()


def optional_actor():
    """Actor for endpoints open to anonymous respondents, None without a token."""
    verify_jwt_in_request(optional=True)
    if get_jwt_identity() is None:
        return None
    return current_user.as_actor()


def roles_required(*roles):
    """Route decorator: valid access token and one of ``roles``."""
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            actor = current_actor()
            if actor.role not in roles:
                current_app.logger.info(
                    "Role %s rejected for %s, needs one of %s", actor.role, fn.__name__, roles
                )
                raise AuthorizationError()
            return fn(*args, **kwargs)
        return wrapper
    return decorator
