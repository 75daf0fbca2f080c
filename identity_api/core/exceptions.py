"""
Centralised custom exceptions.
Services raise these directly; FastAPI turns each one into its status code and
a user-safe `detail` message. Anything not listed here is logged server-side
and reduced to a generic 500 by the handler in main.py.
"""
from fastapi import HTTPException, status


class ValidationException(HTTPException):
    """Malformed input or a policy violation (password length, email domain)."""

    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class CredentialsException(HTTPException):
    # Same detail for "no such user" and "wrong password" so callers cannot tell which check failed
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class NotFoundException(HTTPException):
    def __init__(self, resource: str = "Resource", detail: str = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail or f"{resource} not found",
        )


class ConflictException(HTTPException):
    def __init__(self, detail: str = "User already exists with this email"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class MismatchException(HTTPException):
    def __init__(self, detail: str = "Name does not match our records for this email"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ExpiredOTPException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="OTP has expired. Please request a new one.",
        )


class InvalidOTPException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid OTP",
        )


class DeliveryFailedException(HTTPException):
    def __init__(self, detail: str = "Failed to send email. Please try again."):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class UpstreamFailureException(HTTPException):
    def __init__(self, detail: str = "A required service is unavailable. Please try again later."):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
