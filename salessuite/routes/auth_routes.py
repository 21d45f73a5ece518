from flask import Blueprint, jsonify, request, session
import logging

from salessuite.errors import InvalidCredentialsError, ValidationInputError
from salessuite.services.client_store import user_store
from salessuite.utils.auth_utils import admin_required, current_user_id, login_required, start_session

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')
users_bp = Blueprint('users', __name__, url_prefix='/api/users')
logger = logging.getLogger(__name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create an account; the first account becomes admin"""
    data = request.get_json(silent=True) or {}
    try:
        user = user_store.register(data.get('name'), data.get('email'), data.get('password'))
    except ValidationInputError as e:
        return jsonify({'success': False, 'message': e.user_message}), 400

    return jsonify(user.to_json()), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    try:
        user = user_store.authenticate(data.get('email'), data.get('password'))
    except ValidationInputError as e:
        return jsonify({'success': False, 'message': e.user_message}), 400
    except InvalidCredentialsError as e:
        return jsonify({'success': False, 'message': e.user_message}), 401

    start_session(user)
    logger.info(f"User {user.id} logged in")
    return jsonify(user.to_json())


@auth_bp.route('/logout', methods=['POST'])
def logout():
    user_id = current_user_id()
    session.clear()
    if user_id:
        logger.info(f"User {user_id} logged out")
    return jsonify({'success': True})


@auth_bp.route('/me')
@login_required
def me():
    user = user_store.get(current_user_id())
    if user is None:
        session.clear()
        return jsonify({'success': False, 'message': 'Please sign in to continue.'}), 401
    return jsonify(user.to_json())


@users_bp.route('', methods=['GET'])
@admin_required
def list_users():
    """All users without password data (admin only)"""
    return jsonify([u.to_json() for u in user_store.list_users()])
