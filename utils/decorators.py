"""
Route decorators for authentication and authorization.
Provides role-based access control for operator routes.
"""

from functools import wraps
from flask_login import login_required, current_user

from utils.api_response import api_error
from utils.messages import get_message


def operator_required(func):
    """
    Decorator to require an authenticated operator (admin role).

    Answers with JSON 401/403 instead of redirecting, since every
    operator route is an API endpoint.

    Usage:
        @bp.route('/admin/statistics')
        @operator_required
        def statistics():
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            return api_error(get_message('login_required'), status=401)

        if not current_user.is_operator:
            return api_error(get_message('permission_denied'), status=403)

        return func(*args, **kwargs)
    return wrapper


# Re-export login_required for convenience
__all__ = ['login_required', 'operator_required']
