"""
Authentication routes: login, logout, current operator.
Operators authenticate with a Flask-Login session; all responses are JSON.
"""

from flask import Blueprint, current_app
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from blueprints.auth.forms import LoginForm
from models.user import User, get_user_by_username, update_last_login, check_password
from utils.api_response import api_success, api_error
from utils.messages import get_message

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """CSRF token for operator requests (send back in X-CSRFToken)."""
    return api_success(data={'csrf_token': generate_csrf()})


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Log an operator in.

    Request body (JSON or form):
        username, password, remember_me (optional)
    """
    form = LoginForm()

    if not form.validate_on_submit():
        errors = {field: messages[0] for field, messages in form.errors.items()}
        return api_error(next(iter(errors.values()), get_message('invalid_credentials')),
                         status=400, errors=errors)

    user_dict = get_user_by_username(form.username.data)

    if user_dict is None or not check_password(user_dict, form.password.data):
        current_app.logger.info('Failed login for %s', form.username.data)
        return api_error(get_message('invalid_credentials'), status=401)

    if not user_dict.get('active'):
        return api_error('Account is disabled', status=403)

    user = User(user_dict)
    login_user(user, remember=form.remember_me.data)
    update_last_login(user.id)

    return api_success(
        data=user.to_dict(),
        message=get_message('login_success', name=user.full_name or user.username)
    )


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Logout current user."""
    logout_user()
    return api_success(message=get_message('logout_success'))


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    """Current operator profile."""
    return api_success(data=current_user.to_dict())
