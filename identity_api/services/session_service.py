"""
Session service: sign-in and claims refresh.

A session is a signed copy of a few user attributes taken at sign-in time.
Profile edits go straight to the database and do NOT touch live sessions;
the client calls refresh_claims() to pull the current values into a fresh
token.
"""
import logging
from typing import Optional, Union
import uuid

from identity_api.core.exceptions import CredentialsException
from identity_api.core.security import SessionSigner, get_session_signer
from identity_api.models.user import User
from identity_api.schemas.auth import SessionClaims
from identity_api.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def claims_for(user: User) -> SessionClaims:
    gender = user.gender.value if user.gender is not None else None
    return SessionClaims(
        id=str(user.id),
        name=user.name,
        email=user.email,
        avatar=user.avatar_url,
        gender=gender,
    )


def sign_in(
    store: CredentialStore,
    email: str,
    password: str,
    signer: Optional[SessionSigner] = None,
) -> tuple[SessionClaims, str]:
    """
    Returns (claims, token). Unknown email and wrong password raise the exact
    same CredentialsException.
    """
    if not email or not password:
        raise CredentialsException()

    user = store.authenticate(email, password)
    if user is None:
        logger.info("Sign-in rejected")
        raise CredentialsException()

    signer = signer or get_session_signer()
    claims = claims_for(user)
    logger.info(f"User {user.id} signed in")
    return claims, signer.mint(claims)


def refresh_claims(
    store: CredentialStore,
    subject_id: Union[str, uuid.UUID],
    signer: Optional[SessionSigner] = None,
) -> tuple[SessionClaims, str]:
    """Re-read the user and overwrite every mutable claim (name, email, avatar, gender)."""
    user = store.find_by_id(subject_id)
    if user is None:
        # Account deleted since the session was issued
        raise CredentialsException("Invalid or expired session")

    signer = signer or get_session_signer()
    claims = claims_for(user)
    return claims, signer.mint(claims)
