"""Authorization helpers for the API."""

from functools import wraps
from typing import Iterable, Set

from flask import current_app, jsonify, session

from arena_core.models import Role


def _normalize_roles(roles: Iterable) -> Set[str]:
    normalized = set()
    for role in roles:
        if isinstance(role, Role):
            normalized.add(role.value)
        else:
            normalized.add(str(role))
    return normalized


def current_user():
    """The signed-in account, when this client holds its session."""
    user = current_app.container.state.current_user
    if user is None or session.get('secure_id') != user.secure_id:
        return None
    return user


def roles_required(*roles):
    """Require an active session, and one of the roles when any are given."""

    required = _normalize_roles(roles)

    def decorator(view_func):
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            user = current_user()
            if user is None:
                return jsonify({'error': 'Authentication required'}), 401

            if required and user.role.value not in required:
                return jsonify({'error': 'Insufficient clearance'}), 403

            return view_func(*args, **kwargs)

        return wrapped

    return decorator


__all__ = ["roles_required", "current_user"]
