"""
HMAC-SHA256 signer over the process-wide secret.

Signatures are deterministic, so anything signed here can be checked later by
recomputing the signature instead of looking anything up.
"""
import hashlib
import hmac

from identity_api.config import settings


class SecretSigner:
    def __init__(self, secret: str):
        self._key = secret.encode("utf-8")

    def sign(self, message: str) -> str:
        """Return the lowercase hex HMAC-SHA256 of `message`."""
        return hmac.new(self._key, message.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(self, message: str, signature: str) -> bool:
        # compare_digest keeps the comparison time independent of the mismatch position
        return hmac.compare_digest(self.sign(message).encode("utf-8"), signature.encode("utf-8"))


def get_signer() -> SecretSigner:
    return SecretSigner(settings.secret_key)
