"""Credential hashing, session identifiers and the User factory."""
import uuid

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError

from app import entities
from app.services.clock import Clock, utc_now
from app.services.validation import UserCandidate, validate


class IdentityService:
    def __init__(self, password_hash: PasswordHash | None = None) -> None:
        self._password_hash = password_hash or PasswordHash.recommended()
        # A real hash, verified against when the name is unknown so that
        # both login failures cost the same.
        self.dummy_hash = self._password_hash.hash("dummy-password-for-timing")

    def new_session_id(self) -> str:
        """Return a fresh session identifier; callers still check it for collisions."""
        return str(uuid.uuid4())

    def hash_password(self, plain_password: str) -> str:
        return self._password_hash.hash(plain_password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        try:
            return self._password_hash.verify(plain_password, hashed_password)
        except UnknownHashError:
            return False


class UserFactory:
    """Builds new, validated User aggregates with a hashed password."""

    def __init__(
        self,
        identity: IdentityService,
        clock: Clock = utc_now,
    ) -> None:
        self._identity = identity
        self._clock = clock

    def new_user(self, name: str, password: str) -> entities.User:
        validate(UserCandidate, {"name": name, "password": password})

        now = self._clock()
        return entities.User(
            name=name,
            password=self._identity.hash_password(password),
            created_at=now,
            updated_at=now,
        )
