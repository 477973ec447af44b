"""Player accounts: a repository abstraction plus sign-up/login flows."""
from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import asdict, dataclass, replace
from typing import Dict, Optional, Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from .clock import Clock, SystemClock
from .storage import KeyValueStore, StorageError
from .wallet import Wallet

log = logging.getLogger(__name__)

TOKEN_KEY = "authToken"
TOKEN_PREFIX = "token_"
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_USERNAME_LENGTH = 3


@dataclass(frozen=True)
class User:
    id: str
    email: str
    username: str
    created_at: str
    avatar: Optional[str] = None


@dataclass(frozen=True)
class UserRecord:
    user: User
    password_hash: str

    def to_json(self) -> str:
        return json.dumps({"user": asdict(self.user), "password_hash": self.password_hash})

    @classmethod
    def from_json(cls, raw: str) -> "UserRecord":
        data = json.loads(raw)
        return cls(user=User(**data["user"]), password_hash=data["password_hash"])


class UserRepository(Protocol):
    def get(self, email: str) -> Optional[UserRecord]: ...

    def put(self, record: UserRecord) -> None: ...

    def find_by_id(self, user_id: str) -> Optional[UserRecord]: ...


class InMemoryUserRepository:
    def __init__(self) -> None:
        self._records: Dict[str, UserRecord] = {}

    def get(self, email: str) -> Optional[UserRecord]:
        return self._records.get(email.lower())

    def put(self, record: UserRecord) -> None:
        self._records[record.user.email.lower()] = record

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        for record in self._records.values():
            if record.user.id == user_id:
                return record
        return None


class StoreUserRepository:
    """Users kept as JSON documents in a key-value store, with an id index."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self, email: str) -> Optional[UserRecord]:
        raw = self.store.get(f"user:{email.lower()}")
        if not raw:
            return None
        try:
            return UserRecord.from_json(raw)
        except (ValueError, KeyError, TypeError) as exc:
            raise StorageError(f"unreadable user record for {email}: {exc}") from exc

    def put(self, record: UserRecord) -> None:
        email = record.user.email.lower()
        self.store.write_many(
            {
                f"user:{email}": record.to_json(),
                f"user_id:{record.user.id}": email,
            }
        )

    def find_by_id(self, user_id: str) -> Optional[UserRecord]:
        email = self.store.get(f"user_id:{user_id}")
        return self.get(email) if email else None


@dataclass(frozen=True)
class AuthResult:
    ok: bool
    user: Optional[User] = None
    reason: Optional[str] = None


class AccountService:
    def __init__(
        self,
        repository: UserRepository,
        store: KeyValueStore,
        wallet: Optional[Wallet] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.repository = repository
        self.store = store
        self.wallet = wallet
        self.clock = clock or SystemClock()
        self.user: Optional[User] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def signup(self, email: str, username: str, password: str) -> AuthResult:
        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            return AuthResult(ok=False, reason="Invalid email address")
        if len(username.strip()) < MIN_USERNAME_LENGTH:
            return AuthResult(ok=False, reason=f"Username must be at least {MIN_USERNAME_LENGTH} characters")
        if not password:
            return AuthResult(ok=False, reason="Password is required")

        try:
            if self.repository.get(email):
                return AuthResult(ok=False, reason="An account with this email already exists")
            user = User(
                id=uuid.uuid4().hex,
                email=email,
                username=username.strip(),
                created_at=self.clock.now().isoformat(),
            )
            self.repository.put(UserRecord(user=user, password_hash=generate_password_hash(password)))
            self.store.set(TOKEN_KEY, f"{TOKEN_PREFIX}{user.id}")
        except StorageError as exc:
            log.warning("Signup failed for %s: %s", email, exc)
            return AuthResult(ok=False, reason="Storage unavailable")

        # Fresh accounts start from a fresh wallet
        if self.wallet is not None:
            self.wallet.reset()

        self.user = user
        log.info("Created account %s (%s)", user.username, user.id)
        return AuthResult(ok=True, user=user)

    def login(self, email: str, password: str) -> AuthResult:
        try:
            record = self.repository.get(email.strip().lower())
            if not record or not check_password_hash(record.password_hash, password):
                return AuthResult(ok=False, reason="Invalid email or password")
            self.store.set(TOKEN_KEY, f"{TOKEN_PREFIX}{record.user.id}")
        except StorageError as exc:
            log.warning("Login failed for %s: %s", email, exc)
            return AuthResult(ok=False, reason="Storage unavailable")

        self.user = record.user
        return AuthResult(ok=True, user=record.user)

    def logout(self) -> AuthResult:
        try:
            self.store.remove(TOKEN_KEY)
        except StorageError as exc:
            log.warning("Logout could not clear the session token: %s", exc)
            return AuthResult(ok=False, reason="Storage unavailable")
        self.user = None
        return AuthResult(ok=True)

    def change_password(self, current_password: str, new_password: str) -> AuthResult:
        if self.user is None:
            return AuthResult(ok=False, reason="Not logged in")
        if not new_password:
            return AuthResult(ok=False, reason="Password is required")

        try:
            record = self.repository.get(self.user.email)
            if not record or not check_password_hash(record.password_hash, current_password):
                return AuthResult(ok=False, reason="Current password is incorrect")
            self.repository.put(replace(record, password_hash=generate_password_hash(new_password)))
        except StorageError as exc:
            log.warning("Password change failed: %s", exc)
            return AuthResult(ok=False, reason="Storage unavailable")
        return AuthResult(ok=True, user=self.user)

    def forgot_password(self, email: str) -> AuthResult:
        # No mail delivery; the request is always acknowledged
        log.info("Password reset requested for %s", email)
        return AuthResult(ok=True)

    def restore_session(self) -> AuthResult:
        try:
            token = self.store.get(TOKEN_KEY)
            if not token or not token.startswith(TOKEN_PREFIX):
                return AuthResult(ok=False, reason="No session")
            record = self.repository.find_by_id(token[len(TOKEN_PREFIX):])
        except StorageError as exc:
            log.warning("Could not restore session: %s", exc)
            return AuthResult(ok=False, reason="Storage unavailable")

        if not record:
            return AuthResult(ok=False, reason="No session")
        self.user = record.user
        return AuthResult(ok=True, user=record.user)
