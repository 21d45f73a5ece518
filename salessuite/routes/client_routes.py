from flask import Blueprint, jsonify, request
import logging

from pydantic import ValidationError

from salessuite.errors import ValidationInputError
from salessuite.models import NewClient
from salessuite.services.client_store import client_store
from salessuite.utils.auth_utils import admin_required, current_user_id, login_required

clients_bp = Blueprint('clients', __name__, url_prefix='/api/clients')
logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('name', 'value', 'status')


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    field = '.'.join(str(part) for part in first.get('loc', ())) or 'input'
    return f"Invalid {field}: {first.get('msg', 'invalid value')}"


@clients_bp.route('', methods=['GET'])
@login_required
def get_clients():
    """Clients for the requested user, newest first"""
    user_id = request.args.get('userId')
    if not user_id:
        return jsonify({'success': False, 'message': 'userId is required'}), 400
    if user_id != current_user_id():
        return jsonify({'success': False, 'message': 'You can only view your own clients.'}), 403

    clients = client_store.list_clients(user_id)
    return jsonify([c.to_json() for c in clients])


@clients_bp.route('', methods=['POST'])
@login_required
def add_client():
    data = request.get_json(silent=True) or {}
    user_id = data.pop('userId', None)

    if not user_id or any(data.get(key) in (None, '') for key in REQUIRED_FIELDS):
        return jsonify({'success': False, 'message': 'Missing required client data'}), 400
    if user_id != current_user_id():
        return jsonify({'success': False, 'message': 'You can only add clients to your own account.'}), 403

    try:
        new_client = NewClient.model_validate(data)
        record = client_store.add_client(user_id, new_client)
    except ValidationError as e:
        return jsonify({'success': False, 'message': _validation_message(e)}), 400
    except ValidationInputError as e:
        return jsonify({'success': False, 'message': e.user_message}), 400

    return jsonify(record.to_json()), 201


@clients_bp.route('/all', methods=['GET'])
@admin_required
def get_all_clients():
    """Mapping of user id to that user's clients (admin only)"""
    clients_by_user = client_store.clients_by_user()
    return jsonify({
        user_id: [c.to_json() for c in clients]
        for user_id, clients in clients_by_user.items()
    })
