"""
Profile router.

Endpoints:
  GET   /profile           → current user's full profile
  PATCH /profile/update    → change name, gender, avatar
  POST  /profile/complete  → validate and store state/city/postal code

Changes are written to the database only; clients refresh their session
(POST /auth/session/refresh) to see them in session claims.
"""
from fastapi import APIRouter, Depends

from identity_api.core.dependencies import get_credential_store, get_current_session
from identity_api.schemas.auth import SessionClaims
from identity_api.schemas.user import (
    UserOut, ProfileUpdateRequest, ProfileUpdateResponse, AddressCompleteRequest,
)
from identity_api.services import profile_service
from identity_api.services.address_service import AddressValidator, get_address_validator
from identity_api.services.credential_store import CredentialStore

router = APIRouter()


@router.get("", response_model=UserOut)
def get_profile(
    claims: SessionClaims = Depends(get_current_session),
    store: CredentialStore = Depends(get_credential_store),
):
    return profile_service.get_profile(store, claims.id)


@router.patch("/update", response_model=ProfileUpdateResponse)
def update_profile(
    body: ProfileUpdateRequest,
    claims: SessionClaims = Depends(get_current_session),
    store: CredentialStore = Depends(get_credential_store),
):
    """PATCH semantics: fields left out of the body are not touched."""
    user = profile_service.update_profile(
        store, claims.id, name=body.name, gender=body.gender, avatar=body.avatar
    )
    return {"message": "Profile updated successfully", "user": UserOut.model_validate(user)}


@router.post("/complete", response_model=ProfileUpdateResponse)
def complete_profile(
    body: AddressCompleteRequest,
    claims: SessionClaims = Depends(get_current_session),
    store: CredentialStore = Depends(get_credential_store),
    validator: AddressValidator = Depends(get_address_validator),
):
    user = profile_service.complete_address(
        store, validator, claims.id,
        state=body.state, city=body.city, postal_code=body.postal_code,
    )
    return {"message": "Profile updated successfully", "user": UserOut.model_validate(user)}
