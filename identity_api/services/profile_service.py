"""
Profile service: read, edit and address completion.

Edits here change the database only. A signed-in client sees them in its
session after it asks for a claims refresh (see session_service).
"""
import logging
from typing import Optional

from identity_api.core.exceptions import NotFoundException, ValidationException
from identity_api.models.user import Gender, User
from identity_api.services.address_service import AddressValidator
from identity_api.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


def get_profile(store: CredentialStore, user_id: str) -> User:
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFoundException("User")

    # Accounts that got all address parts before the flag existed
    if not user.is_address_complete and user.has_full_address:
        user = store.update_fields(user.id, is_address_complete=True)
    return user


def update_profile(
    store: CredentialStore,
    user_id: str,
    name: Optional[str] = None,
    gender: Optional[Gender] = None,
    avatar: Optional[str] = None,
) -> User:
    """Only the provided fields change."""
    changes = {}
    if name is not None:
        if not name.strip():
            raise ValidationException("Name cannot be empty")
        changes["name"] = name.strip()
    if gender is not None:
        changes["gender"] = gender
    if avatar is not None:
        changes["avatar_url"] = avatar

    if not changes:
        user = store.find_by_id(user_id)
    else:
        user = store.update_fields(user_id, **changes)
    if user is None:
        raise NotFoundException("User")
    return user


def complete_address(
    store: CredentialStore,
    validator: AddressValidator,
    user_id: str,
    state: str,
    city: str,
    postal_code: str,
) -> User:
    result = validator.validate(state, city, postal_code)
    if not result.is_valid:
        raise ValidationException(result.message or "Invalid postal code")

    user = store.update_fields(
        user_id,
        state=state,
        city=city,
        postal_code=postal_code,
        is_address_complete=True,
    )
    if user is None:
        raise NotFoundException("User")
    logger.info(f"User {user.id} completed their address")
    return user
