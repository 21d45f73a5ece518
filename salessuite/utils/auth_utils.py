"""
Authentication utilities for the Flask application
"""
import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from salessuite.models import User

logger = logging.getLogger(__name__)

# Absolute session lifetime
MAX_SESSION_SECONDS = 4 * 60 * 60


def start_session(user: User) -> None:
    """Store the logged-in user in the session."""
    session.clear()
    session['user_id'] = user.id
    session['user_email'] = user.email
    session['user_name'] = user.name
    session['is_admin'] = user.is_admin
    session['login_time'] = datetime.now(timezone.utc).isoformat()


def current_user_id() -> Optional[str]:
    return session.get('user_id')


def _session_expired() -> bool:
    login_time_str = session.get('login_time')
    if not login_time_str:
        return True
    try:
        login_time = datetime.fromisoformat(login_time_str)
    except (ValueError, TypeError) as e:
        logger.warning(f"Error parsing login_time: {e}")
        return True
    return (datetime.now(timezone.utc) - login_time).total_seconds() > MAX_SESSION_SECONDS


def login_required(f):
    """Decorator to require an authenticated session for API routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not session.get('user_id'):
            logger.debug(f"Unauthenticated request to {request.endpoint}")
            return jsonify({'success': False, 'message': 'Please sign in to continue.'}), 401

        if _session_expired():
            logger.info(f"Session expired for user {session.get('user_id')}")
            session.clear()
            return jsonify({'success': False, 'message': 'Your session has expired. Please log in again.'}), 401

        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Decorator to require an authenticated admin session"""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not session.get('is_admin', False):
            logger.warning(f"Non-admin user {session.get('user_id')} denied access to {request.endpoint}")
            return jsonify({'success': False, 'message': 'Access denied. Administrator privileges required.'}), 403
        return f(*args, **kwargs)
    return decorated_function
