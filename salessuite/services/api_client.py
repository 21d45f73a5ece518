"""
HTTP client for the persistence API (clients, auth, users).

Used by front ends and scripts that talk to a running server rather than
importing the stores directly:

    api = ApiClient()  # API_BASE_URL or http://localhost:5000/api
    user = api.login("ada@example.com", "secret1")
    clients = api.get_clients(user.id)

The server keeps the login in a cookie session, so reuse one ApiClient (and its
requests.Session) across calls.
"""
import os
import logging
from typing import Dict, List, Optional

import requests

from salessuite.errors import ApiError
from salessuite.models import ClientRecord, NewClient, User

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = 'http://localhost:5000/api'
UNKNOWN_ERROR = 'An unknown error occurred'


class ApiClient:
    """Thin get/post wrapper; non-2xx responses raise ApiError with the server's message."""

    def __init__(self, base_url: Optional[str] = None, session: Optional[requests.Session] = None, timeout: float = 30.0):
        self.base_url = (base_url or os.getenv('API_BASE_URL', DEFAULT_BASE_URL)).rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _handle_response(self, response: requests.Response):
        if not response.ok:
            try:
                message = response.json().get('message') or UNKNOWN_ERROR
            except ValueError:
                message = UNKNOWN_ERROR
            logger.error(f"API request failed: {response.status_code} {response.url} - {message}")
            raise ApiError(message, status_code=response.status_code)
        return response.json()

    def get(self, endpoint: str, params: Optional[dict] = None):
        try:
            response = self.session.get(f"{self.base_url}{endpoint}", params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"API GET {endpoint} failed: {e}")
            raise ApiError(f"Could not reach the server: {type(e).__name__}")
        return self._handle_response(response)

    def post(self, endpoint: str, data: dict):
        try:
            response = self.session.post(f"{self.base_url}{endpoint}", json=data, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"API POST {endpoint} failed: {e}")
            raise ApiError(f"Could not reach the server: {type(e).__name__}")
        return self._handle_response(response)

    # Clients

    def get_clients(self, user_id: str) -> List[ClientRecord]:
        return [ClientRecord.model_validate(c) for c in self.get('/clients', params={'userId': user_id})]

    def add_client(self, user_id: str, client: NewClient) -> ClientRecord:
        payload = {**client.model_dump(mode='json', exclude_none=True), 'userId': user_id}
        return ClientRecord.model_validate(self.post('/clients', payload))

    def get_all_clients_data(self) -> Dict[str, List[ClientRecord]]:
        data = self.get('/clients/all')
        return {
            user_id: [ClientRecord.model_validate(c) for c in clients]
            for user_id, clients in data.items()
        }

    # Auth

    def register(self, name: str, email: str, password: str) -> User:
        return User.model_validate(self.post('/auth/register', {'name': name, 'email': email, 'password': password}))

    def login(self, email: str, password: str) -> User:
        return User.model_validate(self.post('/auth/login', {'email': email, 'password': password}))

    def get_all_users(self) -> List[User]:
        return [User.model_validate(u) for u in self.get('/users')]
