"""
Local account registry: signup, login and the remembered session.

Accounts are kept as one JSON list under ``paisapal_users``. Each browser
session remembers its logged-in user under ``paisapal_user_<session id>``, so
sessions sharing one store never see each other's login. New passwords are
bcrypt-hashed; accounts saved with a plaintext password by older versions
still log in.
"""

import logging
from typing import List, Optional

import bcrypt
from pydantic import ValidationError

from models import Account, User, new_id
from storage import KeyValueStore

logger = logging.getLogger(__name__)

USERS_KEY = "paisapal_users"
SESSION_KEY = "paisapal_user_{session_id}"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, stored: str) -> bool:
    if stored.startswith("$2"):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            return False
    # Legacy plaintext entry
    return password == stored


class AccountRegistry:
    def __init__(self, store: KeyValueStore, session_id: Optional[str] = None):
        self._store = store
        # One remembered login per browser session
        self.session_key = SESSION_KEY.format(session_id=session_id or new_id())

    def accounts(self) -> List[Account]:
        accounts = []
        for raw in self._store.get(USERS_KEY, []) or []:
            try:
                accounts.append(Account.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping malformed account entry: %s", e)
        return accounts

    def find(self, email: str) -> Optional[Account]:
        email = email.strip().lower()
        return next((a for a in self.accounts() if a.email.strip().lower() == email), None)

    def signup(self, name: str, email: str, password: str) -> Optional[User]:
        """Create an account and log it in; ``None`` when the email is taken."""
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email or not password:
            return None
        if self.find(email) is not None:
            logger.info("Signup rejected: %s already registered", email)
            return None

        account = Account(name=name, email=email, password=hash_password(password))
        self._store.set(USERS_KEY, [a.to_storage() for a in self.accounts()] + [account.to_storage()])
        user = account.to_user()
        self._remember(user)
        return user

    def login(self, email: str, password: str) -> Optional[User]:
        account = self.find(email or "")
        if account is None or not check_password(password or "", account.password):
            logger.info("Failed login attempt for %s", email)
            return None
        user = account.to_user()
        self._remember(user)
        return user

    def logout(self) -> None:
        self._store.delete(self.session_key)

    def current_user(self) -> Optional[User]:
        raw = self._store.get(self.session_key)
        if not raw:
            return None
        try:
            return User.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed session entry")
            return None

    def _remember(self, user: User) -> None:
        self._store.set(self.session_key, user.to_storage())
