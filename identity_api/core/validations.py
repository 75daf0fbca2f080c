"""
Account policies shared by signup and password reset.
"""
import hashlib
from typing import Callable, Iterable, Optional

from identity_api.config import settings
from identity_api.core.exceptions import ValidationException

EmailPolicy = Callable[[str], bool]


def domain_policy(allowed_domains: Iterable[str]) -> EmailPolicy:
    """
    Build an email predicate from a list of allowed domains.
    An empty list allows every address.
    """
    allowed = {d.lower() for d in allowed_domains}

    def _check(email: str) -> bool:
        if not allowed:
            return True
        _, at, domain = (email or "").rpartition("@")
        return bool(at) and domain.lower() in allowed

    return _check


def default_email_policy() -> EmailPolicy:
    return domain_policy(settings.allowed_email_domains_list)


def validate_email(email: str, policy: Optional[EmailPolicy] = None) -> None:
    if not email:
        raise ValidationException("Email is required")
    policy = policy or default_email_policy()
    if not policy(email):
        domains = ", ".join(f"@{d}" for d in settings.allowed_email_domains_list)
        raise ValidationException(f"Email must use an allowed domain ({domains})")


def validate_password(password: str) -> None:
    low, high = settings.password_min_length, settings.password_max_length
    if not password or len(password) < low:
        raise ValidationException(f"Password must be at least {low} characters long")
    if len(password) > high:
        raise ValidationException(f"Password must be at most {high} characters long")


def default_avatar_url(email: str) -> str:
    """Deterministic placeholder avatar: same email, same picture."""
    digest = hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()
    return f"{settings.default_avatar_base.rstrip('/')}/{digest}"
