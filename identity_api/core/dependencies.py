"""
FastAPI dependencies used across routers.
Keep this file lean: only session/DB wiring goes here.
Business logic belongs in services/.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from identity_api.config import settings
from identity_api.database import get_db
from identity_api.core.exceptions import CredentialsException
from identity_api.core.security import SessionSigner, get_session_signer
from identity_api.schemas.auth import SessionClaims
from identity_api.services.credential_store import CredentialStore

# auto_error=False: the session may come from the cookie instead of the header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/signin", auto_error=False)


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    return CredentialStore(db)


def get_session_token(
    request: Request,
    bearer: Optional[str] = Depends(oauth2_scheme),
) -> str:
    """Bearer header first, then the session cookie."""
    token = bearer or request.cookies.get(settings.session_cookie_name)
    if not token:
        raise CredentialsException("Not authenticated")
    return token


def get_current_session(
    token: str = Depends(get_session_token),
    signer: SessionSigner = Depends(get_session_signer),
) -> SessionClaims:
    """
    Verifies the session signature and expiry and returns its claims.
    Claims may be stale if the profile changed since sign-in; the database
    is only consulted by endpoints that need fresh data.
    """
    return signer.verify(token)
