"""
In-memory persistence for users and client records.

Both stores are keyed by user id and guarded by a lock; every method takes
the acting user's id explicitly.
"""
import logging
import threading
import time
from datetime import date
from typing import Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from salessuite.errors import (
    DuplicateUserError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationInputError,
)
from salessuite.models import ClientRecord, NewClient, User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _now_ms() -> int:
    return int(time.time() * 1000)


class UserStore:
    """
    User accounts with hashed passwords. The first registered user is admin.
    """

    def __init__(self):
        self._users: Dict[str, dict] = {}
        self._lock = threading.Lock()
        self._last_id = 0

    def register(self, name: str, email: str, password: str) -> User:
        """
        Create an account.

        Raises:
            ValidationInputError: If a field is blank or the password is too short.
            DuplicateUserError: If the email is already registered.
        """
        name = (name or '').strip()
        email = (email or '').strip().lower()
        if not name or not email or not password:
            raise ValidationInputError("Name, email, and password are required")

        with self._lock:
            if any(u['email'] == email for u in self._users.values()):
                raise DuplicateUserError()
            if len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationInputError(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
                )

            self._last_id = max(_now_ms(), self._last_id + 1)
            user = User(
                id=f"user_{self._last_id}",
                name=name,
                email=email,
                is_admin=not self._users,
            )
            self._users[user.id] = {
                'email': email,
                'user': user,
                'password_hash': generate_password_hash(password),
            }

        logger.info(f"Registered user {user.id} admin={user.is_admin}")
        return user

    def authenticate(self, email: str, password: str) -> User:
        """
        Raises:
            ValidationInputError: If email or password is blank.
            InvalidCredentialsError: On unknown email or wrong password.
        """
        email = (email or '').strip().lower()
        if not email or not password:
            raise ValidationInputError("Email and password are required")

        with self._lock:
            entry = next((u for u in self._users.values() if u['email'] == email), None)
        if entry is None or not check_password_hash(entry['password_hash'], password):
            logger.warning("Failed login attempt")
            raise InvalidCredentialsError()
        return entry['user']

    def get(self, user_id: str) -> Optional[User]:
        with self._lock:
            entry = self._users.get(user_id)
        return entry['user'] if entry else None

    def list_users(self) -> List[User]:
        with self._lock:
            return [entry['user'] for entry in self._users.values()]

    def clear(self) -> None:
        with self._lock:
            self._users.clear()


class ClientStore:
    """
    Client records per user. Ids are millisecond timestamps, strictly increasing.
    """

    def __init__(self):
        self._clients: Dict[str, List[ClientRecord]] = {}
        self._lock = threading.Lock()
        self._last_id = 0

    def list_clients(self, user_id: str) -> List[ClientRecord]:
        """Clients for one user, newest first."""
        if not user_id:
            raise ValidationInputError("userId is required")
        with self._lock:
            clients = list(self._clients.get(user_id, []))
        return sorted(clients, key=lambda c: c.id, reverse=True)

    def get_client(self, user_id: str, client_id: int) -> ClientRecord:
        for client in self.list_clients(user_id):
            if client.id == client_id:
                return client
        raise NotFoundError("Client not found.")

    def add_client(self, user_id: str, data: NewClient, today: Optional[date] = None) -> ClientRecord:
        """
        Add a lead with a server-assigned id and lastContact of today.
        """
        if not user_id:
            raise ValidationInputError("userId is required")

        with self._lock:
            self._last_id = max(_now_ms(), self._last_id + 1)
            record = ClientRecord(
                id=self._last_id,
                user_id=user_id,
                last_contact=today or date.today(),
                **data.model_dump(),
            )
            self._clients.setdefault(user_id, []).append(record)

        logger.info(f"Added client {record.id} for user {user_id}")
        return record

    def clients_by_user(self) -> Dict[str, List[ClientRecord]]:
        with self._lock:
            return {user_id: list(clients) for user_id, clients in self._clients.items()}

    def clear(self) -> None:
        with self._lock:
            self._clients.clear()


# Module-level instances
user_store = UserStore()
client_store = ClientStore()
