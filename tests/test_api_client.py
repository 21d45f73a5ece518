"""
Unit tests for the persistence API client.
The requests session is mocked.
"""
import pytest
import requests
from unittest.mock import MagicMock

from salessuite.errors import ApiError
from salessuite.models import NewClient
from salessuite.services.api_client import ApiClient


def make_response(status_code=200, payload=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.url = 'http://api.test/api/x'
    if json_error:
        response.json.side_effect = ValueError('no json')
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def api(session):
    return ApiClient(base_url='http://api.test/api/', session=session)


CLIENT_JSON = {
    'id': 1, 'userId': 'user_1', 'name': 'Acme', 'value': 100,
    'status': 'Contacted', 'lastContact': '2026-10-01',
}


class TestApiClient:

    def test_base_url_from_environment(self, monkeypatch):
        monkeypatch.setenv('API_BASE_URL', 'https://sales.example.com/api')
        assert ApiClient(session=MagicMock()).base_url == 'https://sales.example.com/api'

    def test_get_clients(self, api, session):
        session.get.return_value = make_response(payload=[CLIENT_JSON])

        result = api.get_clients('user_1')

        assert result[0].name == 'Acme'
        session.get.assert_called_once_with(
            'http://api.test/api/clients', params={'userId': 'user_1'}, timeout=30.0
        )

    def test_add_client_sends_user_id(self, api, session):
        session.post.return_value = make_response(201, CLIENT_JSON)

        api.add_client('user_1', NewClient(name='Acme', value=100, status='Contacted'))

        payload = session.post.call_args.kwargs['json']
        assert payload == {'name': 'Acme', 'value': 100.0, 'status': 'Contacted', 'userId': 'user_1'}

    def test_error_message_from_server(self, api, session):
        session.post.return_value = make_response(409, {'message': 'An account with this email already exists.'})

        with pytest.raises(ApiError) as exc_info:
            api.register('Ada', 'ada@example.com', 'secret1')

        assert exc_info.value.user_message == 'An account with this email already exists.'
        assert exc_info.value.status_code == 409

    def test_error_without_json_body(self, api, session):
        session.get.return_value = make_response(500, json_error=True)

        with pytest.raises(ApiError) as exc_info:
            api.get_all_users()

        assert exc_info.value.user_message == 'An unknown error occurred'

    def test_network_failure(self, api, session):
        session.get.side_effect = requests.ConnectionError('refused')

        with pytest.raises(ApiError):
            api.get_all_clients_data()

    def test_all_clients_data(self, api, session):
        session.get.return_value = make_response(payload={'user_1': [CLIENT_JSON], 'user_2': []})

        result = api.get_all_clients_data()

        assert [c.id for c in result['user_1']] == [1]
        assert result['user_2'] == []
