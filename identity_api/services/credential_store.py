"""
Credential store: account persistence plus password hashing, on top of the
SQLAlchemy `users` table.

The flows never touch the ORM directly; everything goes through this class so
that a plaintext password can never reach the database.
"""
import logging
import uuid
from typing import Optional, Union

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from identity_api.core.exceptions import ConflictException, UpstreamFailureException
from identity_api.core.security import hash_password, verify_password, pwd_context
from identity_api.models.user import Gender, User

logger = logging.getLogger(__name__)

# Pre-computed bcrypt hash used ONLY for constant-time comparison when the user
# does not exist.
_DUMMY_HASH: str = pwd_context.hash("__dummy_timing_prevention__")

# Columns a caller may change through update_fields()
UPDATABLE_FIELDS = {"name", "gender", "avatar_url", "state", "city", "postal_code", "is_address_complete"}


def _as_uuid(user_id: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except ValueError:
        return None


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except OperationalError:
            self.db.rollback()
            logger.exception(f"{action} failed")
            raise UpstreamFailureException()

    def find_by_email(self, email: str) -> Optional[User]:
        try:
            return self.db.query(User).filter(User.email == email).first()
        except OperationalError:
            logger.exception("User lookup by email failed")
            raise UpstreamFailureException()

    def find_by_id(self, user_id: Union[str, uuid.UUID]) -> Optional[User]:
        key = _as_uuid(user_id)
        if key is None:
            return None
        try:
            return self.db.get(User, key)
        except OperationalError:
            logger.exception("User lookup by id failed")
            raise UpstreamFailureException()

    def exists(self, email: str) -> bool:
        return self.find_by_email(email) is not None

    def create(
        self,
        name: str,
        email: str,
        password: str,
        gender: Gender = Gender.male,
        avatar_url: Optional[str] = None,
    ) -> User:
        """
        Insert a new account. `password` is the plaintext; only its hash is stored.
        The unique index on email decides races: the losing insert becomes a Conflict.
        """
        user = User(
            name=name,
            email=email,
            hashed_password=hash_password(password),
            gender=gender,
            avatar_url=avatar_url,
            is_address_complete=False,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Signup lost the race for {email}")
            raise ConflictException()
        except OperationalError:
            self.db.rollback()
            logger.exception("Creating user failed")
            raise UpstreamFailureException()
        self.db.refresh(user)
        return user

    def update_fields(self, user_id: Union[str, uuid.UUID], **fields) -> Optional[User]:
        """Partial update. Returns None when the user does not exist."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        user = self.find_by_id(user_id)
        if user is None:
            return None
        for field, value in fields.items():
            setattr(user, field, value)
        self._commit("Updating user")
        self.db.refresh(user)
        return user

    def set_password(self, email: str, new_password: str) -> bool:
        """Replace the stored hash. Returns False (and changes nothing) if no user has that email."""
        user = self.find_by_email(email)
        if user is None:
            return False
        user.hashed_password = hash_password(new_password)
        self._commit("Setting password")
        return True

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """
        Returns the user when the password matches, else None.
        Always runs exactly one bcrypt verification so "no such user" and
        "wrong password" take the same time.
        """
        user = self.find_by_email(email)
        password_ok = verify_password(password, user.hashed_password if user else _DUMMY_HASH)
        if not user or not password_ok:
            return None
        return user
