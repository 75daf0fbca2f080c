"""
Password reset flow:
  1. request_password_reset   → name + email must match an account; 6-digit code emailed
  2. complete_password_reset  → verify code + token, then replace the password hash

Completing a reset for an email with no account succeeds silently. This is
deliberate: the response must not reveal whether an address is registered.
"""
import logging
from typing import Optional

from identity_api.core.exceptions import (
    ExpiredOTPException, InvalidOTPException, MismatchException, NotFoundException,
)
from identity_api.core.validations import validate_password
from identity_api.services.credential_store import CredentialStore
from identity_api.services.email_service import Mailer, reset_otp_email
from identity_api.services.otp_service import (
    ChallengeStatus, IssuedChallenge, RESET_CODE_DIGITS, RESET_PURPOSE, issue_challenge, verify_challenge,
)

logger = logging.getLogger(__name__)


def names_match(supplied: str, stored: str) -> bool:
    return (supplied or "").strip().lower() == (stored or "").strip().lower()


async def request_password_reset(
    store: CredentialStore,
    mailer: Mailer,
    name: str,
    email: str,
    now: Optional[int] = None,
) -> IssuedChallenge:
    user = store.find_by_email(email)
    if user is None:
        raise NotFoundException(detail="No account found with this email")
    if not names_match(name, user.name):
        raise MismatchException()

    challenge = issue_challenge([RESET_PURPOSE, email], RESET_CODE_DIGITS, now=now)
    subject, html = reset_otp_email(user.name, challenge.code)
    await mailer.send(email, subject, html)

    logger.info(f"Password reset OTP issued for user {user.id}")
    return challenge


def complete_password_reset(
    store: CredentialStore,
    email: str,
    code: str,
    token: str,
    new_password: str,
    now: Optional[int] = None,
) -> None:
    validate_password(new_password)

    status = verify_challenge([RESET_PURPOSE, email], code, token, now=now, digits=RESET_CODE_DIGITS)
    if status is ChallengeStatus.EXPIRED:
        raise ExpiredOTPException()
    if status is not ChallengeStatus.VALID:
        raise InvalidOTPException()

    if not store.set_password(email, new_password):
        # Silent success: the response never reveals whether the email exists
        logger.info("Password reset completed for an email with no account; nothing changed")
        return

    logger.info("Password reset completed")
