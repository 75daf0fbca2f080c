"""
OTP service: stateless one-time-code challenges.

Nothing is stored per challenge. The server hands the client a token of the form
"<hexSignature>.<expiresAtMs>" where the signature is the HMAC of
"<binding...>.<code>.<expiresAtMs>". Verification recomputes the HMAC with the
code the client supplied:
  - a different code changes the message, so the signature no longer matches
  - editing the embedded expiry (even to extend it) does the same
  - the token is bound to a purpose and an email, so it cannot be used in the
    other flow or for another account

Limitation: there is no server-side "consumed" marker, so a captured
code + token pair stays usable until it expires.
"""
import enum
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from identity_api.config import settings
from identity_api.core.signing import SecretSigner, get_signer

logger = logging.getLogger(__name__)

SIGNUP_CODE_DIGITS = 8
RESET_CODE_DIGITS = 6

# First element of every binding, so a challenge only verifies in the flow that issued it
SIGNUP_PURPOSE = "signup"
RESET_PURPOSE = "reset"

TOKEN_DELIMITER = "."


class ChallengeStatus(str, enum.Enum):
    VALID = "valid"
    EXPIRED = "expired"
    INVALID = "invalid"


@dataclass(frozen=True)
class IssuedChallenge:
    code: str         # goes to the user by email, never back to the client
    token: str        # goes to the client, echoed back verbatim
    expires_at: int   # epoch milliseconds


def now_ms() -> int:
    return int(time.time() * 1000)


def default_ttl_ms() -> int:
    return settings.otp_ttl_minutes * 60 * 1000


def generate_code(digits: int) -> str:
    """
    Uniform random code of exactly `digits` digits, in [10^(d-1), 10^d - 1].
    secrets.randbelow() is cryptographically secure (unlike random.randint).
    """
    if digits < 1:
        raise ValueError("digits must be positive")
    low = 10 ** (digits - 1)
    return str(secrets.randbelow(10 ** digits - low) + low)


def _is_code(code: Optional[str], digits: int) -> bool:
    return bool(code) and len(code) == digits and code.isascii() and code.isdigit()


def _challenge_message(binding: Sequence[str], code: str, expires_at) -> str:
    return TOKEN_DELIMITER.join([*binding, code, str(expires_at)])


def issue_challenge(
    binding: Sequence[str],
    digits: int,
    ttl_ms: Optional[int] = None,
    now: Optional[int] = None,
    signer: Optional[SecretSigner] = None,
) -> IssuedChallenge:
    signer = signer or get_signer()
    ttl_ms = default_ttl_ms() if ttl_ms is None else ttl_ms
    now = now_ms() if now is None else now

    code = generate_code(digits)
    expires_at = now + ttl_ms
    signature = signer.sign(_challenge_message(binding, code, expires_at))

    return IssuedChallenge(
        code=code,
        token=f"{signature}{TOKEN_DELIMITER}{expires_at}",
        expires_at=expires_at,
    )


def verify_challenge(
    binding: Sequence[str],
    code: str,
    token: str,
    now: Optional[int] = None,
    signer: Optional[SecretSigner] = None,
    digits: Optional[int] = None,
) -> ChallengeStatus:
    """
    Check a submitted code against its challenge token.

    Never raises for bad client input: a malformed token, a non-numeric
    expiry or (when `digits` is given) a code of the wrong width is INVALID.
    Expiry is checked before the code and the signature.
    """
    signer = signer or get_signer()
    now = now_ms() if now is None else now

    signature, sep, expires_raw = (token or "").rpartition(TOKEN_DELIMITER)
    if not sep or not signature or not (expires_raw.isascii() and expires_raw.isdigit()):
        logger.info("OTP verification failed: malformed token")
        return ChallengeStatus.INVALID

    if now > int(expires_raw):
        logger.info("OTP verification failed: expired")
        return ChallengeStatus.EXPIRED

    if digits is not None and not _is_code(code, digits):
        logger.info("OTP verification failed: wrong code format")
        return ChallengeStatus.INVALID

    # expires_raw is reused as-is so the message matches what was signed byte-for-byte
    if not signer.verify(_challenge_message(binding, code or "", expires_raw), signature):
        logger.info("OTP verification failed: signature mismatch")
        return ChallengeStatus.INVALID

    return ChallengeStatus.VALID
