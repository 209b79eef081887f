from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
from pathlib import Path
from typing import Any, Callable
from uuid import uuid4

import bcrypt
import jwt

from .errors import AuthenticationError, ConfigurationError, DuplicateUserError, ValidationError
from .validation import Violation
from .yaml_store import USERS_FILE, YamlDataDirectory

logger = logging.getLogger(__name__)

BCRYPT_MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password_hash: str
    created_at: datetime

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "username": self.username,
            "password_hash": self.password_hash,
            "created_at": self.created_at.isoformat(timespec="seconds"),
        }

    def public_dict(self) -> dict[str, str]:
        payload = self.to_dict()
        payload.pop("password_hash")
        return payload

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "User":
        return User(
            id=str(data["id"]),
            username=str(data["username"]),
            password_hash=str(data["password_hash"]),
            created_at=datetime.fromisoformat(str(data["created_at"])),
        )


class UserYamlRepository:
    def __init__(self, data: YamlDataDirectory | str | Path = "data") -> None:
        self.data = data if isinstance(data, YamlDataDirectory) else YamlDataDirectory(data)
        self.users_file = self.data.path_for(USERS_FILE)

    def find_by_username(self, username: str) -> User | None:
        for row in self.data.read_list(self.users_file):
            if str(row.get("username")) == username:
                return User.from_dict(row)
        return None

    def create(self, username: str, password_hash: str, now: datetime | None = None) -> User:
        effective_now = (now or datetime.now()).replace(microsecond=0)
        with self.data.lock:
            rows = self.data.read_list(self.users_file)
            if any(str(row.get("username")) == username for row in rows):
                raise DuplicateUserError(username)

            user = User(id=uuid4().hex, username=username, password_hash=password_hash, created_at=effective_now)
            rows.append(user.to_dict())
            self.data.write_list(self.users_file, rows)

        self.data.log_event("USER_REGISTERED", {"id": user.id, "username": username}, effective_now)
        return user


class CredentialService:
    """One-way password hashing backed by bcrypt."""

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=self.rounds)).decode()

    def verify(self, password: str, hashed: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode(), hashed.encode())
        except ValueError:
            # stored value is not a bcrypt hash
            logger.warning("Rejected password check against a malformed hash")
            return False


class TokenService:
    """Sign and verify bearer tokens with an asymmetric key pair."""

    def __init__(
        self,
        private_key: str | None,
        public_key: str | None,
        algorithm: str = "RS256",
        expires_in: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if not private_key or not public_key:
            raise ConfigurationError("JWT keys are missing in the environment variables")
        self.private_key = private_key
        self.public_key = public_key
        self.algorithm = algorithm
        self.expires_in = expires_in
        self.clock: Callable[[], datetime] = clock or (lambda: datetime.now(timezone.utc))

    def sign(self, payload: dict[str, Any]) -> str:
        issued_at = self.clock()
        to_encode = dict(payload)
        to_encode.update({"iat": issued_at, "exp": issued_at + self.expires_in})
        return jwt.encode(to_encode, self.private_key, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        try:
            return jwt.decode(token, self.public_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as error:
            raise AuthenticationError("Token has expired") from error
        except jwt.PyJWTError as error:
            raise AuthenticationError("Token is invalid") from error


def _validate_credentials(username: Any, password: Any) -> None:
    violations: list[Violation] = []
    if not isinstance(username, str) or not username.strip():
        violations.append(Violation("username", "username should not be empty"))
    if not isinstance(password, str) or not password:
        violations.append(Violation("password", "password should not be empty"))
    elif len(password.encode()) > BCRYPT_MAX_PASSWORD_BYTES:
        violations.append(Violation("password", f"password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes"))
    if violations:
        raise ValidationError(violations)


class AuthService:
    """Registration, login and bearer-token checks.

    The repository, credential service and token service are passed in at
    composition time; nothing here reads configuration.
    """

    def __init__(self, users: UserYamlRepository, credentials: CredentialService, tokens: TokenService) -> None:
        self.users = users
        self.credentials = credentials
        self.tokens = tokens

    def register(self, username: str, password: str) -> User:
        _validate_credentials(username, password)
        user = self.users.create(username, self.credentials.hash(password))
        logger.info("Registered user %s", user.username)
        return user

    def validate_user(self, username: str, password: str) -> dict[str, str] | None:
        """Return the user without its password hash when the credentials match."""
        _validate_credentials(username, password)
        user = self.users.find_by_username(username)
        if user is None or not self.credentials.verify(password, user.password_hash):
            return None
        return user.public_dict()

    def login(self, user: dict[str, str] | User) -> dict[str, str]:
        if isinstance(user, User):
            user = user.public_dict()
        payload = {"username": user["username"], "id": user["id"]}
        return {"access_token": self.tokens.sign(payload)}

    def authenticate(self, username: str, password: str) -> dict[str, str]:
        user = self.validate_user(username, password)
        if user is None:
            raise AuthenticationError("Invalid username or password")
        return self.login(user)

    def current_user(self, token: str) -> User:
        payload = self.tokens.verify(token)
        user = self.users.find_by_username(str(payload.get("username", "")))
        if user is None:
            raise AuthenticationError("User not found or unauthorized")
        return user
