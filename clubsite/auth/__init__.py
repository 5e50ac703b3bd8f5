"""Admin gate shared across blueprints.

There are no user accounts: one password, checked with bcrypt, sets a boolean
flag in the session.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar, cast

from flask import current_app, flash, jsonify, redirect, request, session, url_for

from clubsite.extensions import bcrypt

F = TypeVar('F', bound=Callable[..., object])


def _admin_password_hash() -> bytes:
    configured = current_app.config.get('ADMIN_PASSWORD_HASH')
    if configured:
        return configured.encode('utf-8')
    cached = current_app.extensions.get('admin_password_hash')
    if cached is None:
        password = current_app.config.get('ADMIN_PASSWORD') or ''
        cached = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt())
        current_app.extensions['admin_password_hash'] = cached
    return cached


def check_admin_password(password: str) -> bool:
    if not password:
        return False
    return bcrypt.checkpw(password.encode('utf-8'), _admin_password_hash())


def _session_key() -> str:
    return current_app.config.get('ADMIN_SESSION_KEY', 'isAdminAuthenticated')


def is_admin() -> bool:
    return bool(session.get(_session_key()))


def grant_admin() -> None:
    session[_session_key()] = True


def revoke_admin() -> None:
    session.pop(_session_key(), None)


def admin_required(func: F) -> F:
    """Decorator for admin pages; redirects to the login form."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not is_admin():
            flash('Please log in to access the admin dashboard', 'warning')
            return redirect(url_for('auth.login', next=request.full_path))
        return func(*args, **kwargs)

    return cast(F, wrapper)


def api_admin_required(func: F) -> F:
    """Decorator for JSON endpoints; answers 401 instead of redirecting."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not is_admin():
            return jsonify({'error': 'Admin authentication required'}), 401
        return func(*args, **kwargs)

    return cast(F, wrapper)


__all__ = [
    'check_admin_password',
    'is_admin',
    'grant_admin',
    'revoke_admin',
    'admin_required',
    'api_admin_required',
]
