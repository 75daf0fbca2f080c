"""
Signup flow, OTP-gated:
  1. request_signup_challenge → 8-digit code emailed, token returned to the client
  2. complete_signup          → verify code + token, then create the account

Email existence is checked at both steps. The second check covers a race with
another signup; the unique index in the store settles anything that slips
between that check and the insert.
"""
import logging
from typing import Optional

from identity_api.core.exceptions import ConflictException, ExpiredOTPException, InvalidOTPException
from identity_api.core.validations import EmailPolicy, validate_email, validate_password, default_avatar_url
from identity_api.models.user import Gender, User
from identity_api.services.credential_store import CredentialStore
from identity_api.services.email_service import Mailer, signup_otp_email
from identity_api.services.otp_service import (
    ChallengeStatus, IssuedChallenge, SIGNUP_CODE_DIGITS, SIGNUP_PURPOSE, issue_challenge, verify_challenge,
)

logger = logging.getLogger(__name__)


async def request_signup_challenge(
    store: CredentialStore,
    mailer: Mailer,
    email: str,
    email_policy: Optional[EmailPolicy] = None,
    now: Optional[int] = None,
) -> IssuedChallenge:
    validate_email(email, email_policy)
    if store.exists(email):
        raise ConflictException()

    challenge = issue_challenge([SIGNUP_PURPOSE, email], SIGNUP_CODE_DIGITS, now=now)
    subject, html = signup_otp_email(challenge.code)
    # If this fails the token is simply never delivered; the client asks again
    await mailer.send(email, subject, html)

    logger.info(f"Signup OTP issued for {email}")
    return challenge


def complete_signup(
    store: CredentialStore,
    name: str,
    email: str,
    password: str,
    gender: Gender,
    code: str,
    token: str,
    email_policy: Optional[EmailPolicy] = None,
    now: Optional[int] = None,
) -> User:
    validate_email(email, email_policy)
    validate_password(password)

    status = verify_challenge([SIGNUP_PURPOSE, email], code, token, now=now, digits=SIGNUP_CODE_DIGITS)
    if status is ChallengeStatus.EXPIRED:
        raise ExpiredOTPException()
    if status is not ChallengeStatus.VALID:
        raise InvalidOTPException()

    if store.exists(email):
        raise ConflictException()

    user = store.create(
        name=name.strip(),
        email=email,
        password=password,
        gender=gender,
        avatar_url=default_avatar_url(email),
    )
    logger.info(f"User {user.id} signed up")
    return user
