"""
Session and access-control helpers.
"""
from salessuite.utils.auth_utils import (
    login_required,
    admin_required,
    current_user_id,
    start_session
)

__all__ = [
    'login_required',
    'admin_required',
    'current_user_id',
    'start_session'
]
