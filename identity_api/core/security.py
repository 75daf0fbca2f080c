"""
Security utilities: password hashing and signed session tokens.
Uses PyJWT (not python-jose) for sessions and passlib/bcrypt for passwords.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol

import jwt
from jwt.exceptions import InvalidTokenError
from passlib.context import CryptContext

from identity_api.config import settings
from identity_api.core.exceptions import CredentialsException
from identity_api.schemas.auth import SessionClaims

logger = logging.getLogger(__name__)

# ── Password Hashing ──────────────────────────────────────────────────────────
# Work factor comes from settings; bcrypt's own comparison is constant-time.
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


# ── Sessions ──────────────────────────────────────────────────────────────────

class SessionSigner(Protocol):
    """Anything that can turn session claims into a token and back."""

    def mint(self, claims: SessionClaims) -> str: ...

    def verify(self, token: str) -> SessionClaims: ...

    def parse(self, token: str) -> Optional[dict]: ...


class JWTSessionSigner:
    """
    Stateless sessions as HS256 JWTs.

    Claims carried: sub (user id), name, email, avatar, gender, plus iat/exp.
    PyJWT 2.x: jwt.encode() returns str directly. Datetimes are timezone-aware.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def mint(self, claims: SessionClaims) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": claims.id,
            "name": claims.name,
            "email": claims.email,
            "avatar": claims.avatar,
            "gender": claims.gender,
            "type": "session",
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaims:
        """Decode and check signature, expiry and token type. Raises CredentialsException."""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except InvalidTokenError as e:
            logger.debug(f"Rejected session token: {e}")
            raise CredentialsException("Invalid or expired session")

        if payload.get("type") != "session" or not payload.get("sub"):
            raise CredentialsException("Invalid or expired session")

        return SessionClaims(
            id=payload["sub"],
            name=payload.get("name", ""),
            email=payload.get("email", ""),
            avatar=payload.get("avatar"),
            gender=payload.get("gender"),
        )

    def parse(self, token: str) -> Optional[dict]:
        """Read the payload WITHOUT checking the signature. Never use for authorisation."""
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except InvalidTokenError:
            return None


def get_session_signer() -> SessionSigner:
    return JWTSessionSigner(
        settings.secret_key,
        algorithm=settings.session_algorithm,
        expire_minutes=settings.session_expire_minutes,
    )
