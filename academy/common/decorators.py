from functools import wraps
from flask import current_app, jsonify, request
from flask_login import current_user

from academy.auth.utils import normalize_role, ADMIN_ROLES


def not_authenticated():
    return jsonify({'error': 'Not authenticated'}), 401


def forbidden(reason: str = ''):
    user_id = current_user.id if current_user.is_authenticated else None
    current_app.logger.warning(f"Forbidden: {request.method} {request.path} user={user_id} {reason}".rstrip())
    return jsonify({'error': 'Forbidden'}), 403


def current_role():
    """Normalized role of the signed-in profile, or None."""
    if not current_user.is_authenticated:
        return None
    return normalize_role(current_user.role)


def is_admin() -> bool:
    return current_role() in ADMIN_ROLES


def can_manage_course(course) -> bool:
    """Admins manage every course; everyone else only the courses they teach."""
    if not current_user.is_authenticated or course is None:
        return False
    return is_admin() or course.instructor_id == current_user.id


def api_login_required(f):
    """Decorator to require a signed-in profile for an API route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return not_authenticated()
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require the admin or super admin role for an API route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return not_authenticated()
        if not is_admin():
            return forbidden(f"role={current_user.role!r}")
        return f(*args, **kwargs)
    return decorated_function


def roles_required(*roles):
    """Decorator to require one of ``roles`` (normalized) for an API route."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                return not_authenticated()
            if current_role() not in roles:
                return forbidden(f"role={current_user.role!r}")
            return f(*args, **kwargs)
        return decorated_function
    return decorator
