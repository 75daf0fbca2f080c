"""
Auth router: signup, sign-in, sessions and password reset.

Signup (OTP-gated):
  1. POST /auth/send-otp → 8-digit code emailed, challenge token ("hash") returned
  2. POST /auth/signup   → name, email, password, gender, otp, hash → account created

Sign-in:
  POST /auth/signin → session token (JSON body + httpOnly cookie)
  GET  /auth/session → claims of the current session
  POST /auth/session/refresh → re-read the profile, re-issue the session
  POST /auth/logout → drop the session cookie

Password reset:
  1. POST /auth/forgot-password/verify → name + email checked, 6-digit code emailed
  2. POST /auth/forgot-password/reset  → otp + hash + new password
"""
from fastapi import APIRouter, Depends, Response

from identity_api.config import settings
from identity_api.core.dependencies import get_credential_store, get_current_session
from identity_api.core.security import SessionSigner, get_session_signer
from identity_api.schemas.auth import (
    SendOTPRequest, SignupRequest, SignInRequest, ForgotPasswordRequest,
    ResetPasswordRequest, OTPSentResponse, SignInResponse, SessionResponse,
    SessionClaims, MessageResponse,
)
from identity_api.schemas.user import SignupResponse, UserOut
from identity_api.services import password_reset_service, session_service, signup_service
from identity_api.services.credential_store import CredentialStore
from identity_api.services.email_service import Mailer, get_mailer

router = APIRouter()


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


# ── Signup ────────────────────────────────────────────────────────────────────

@router.post("/send-otp", response_model=OTPSentResponse)
async def send_otp(
    body: SendOTPRequest,
    store: CredentialStore = Depends(get_credential_store),
    mailer: Mailer = Depends(get_mailer),
):
    """Step 1 of signup. Fails with 409 if the email is already registered."""
    challenge = await signup_service.request_signup_challenge(store, mailer, body.email)
    return {"message": "OTP sent successfully", "hash": challenge.token}


@router.post("/signup", response_model=SignupResponse, status_code=201)
def signup(
    body: SignupRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    """Step 2 of signup: verify the emailed code and create the account."""
    user = signup_service.complete_signup(
        store,
        name=body.name,
        email=body.email,
        password=body.password,
        gender=body.gender,
        code=body.otp,
        token=body.hash,
    )
    return {"message": "User created successfully", "user": UserOut.model_validate(user)}


# ── Sessions ──────────────────────────────────────────────────────────────────

@router.post("/signin", response_model=SignInResponse)
def signin(
    body: SignInRequest,
    response: Response,
    store: CredentialStore = Depends(get_credential_store),
    signer: SessionSigner = Depends(get_session_signer),
):
    claims, token = session_service.sign_in(store, body.email, body.password, signer=signer)
    _set_session_cookie(response, token)
    return {"access_token": token, "token_type": "bearer", "user": claims}


@router.get("/session", response_model=SessionResponse)
def current_session(claims: SessionClaims = Depends(get_current_session)):
    return {"user": claims}


@router.post("/session/refresh", response_model=SignInResponse)
def refresh_session(
    response: Response,
    claims: SessionClaims = Depends(get_current_session),
    store: CredentialStore = Depends(get_credential_store),
    signer: SessionSigner = Depends(get_session_signer),
):
    """
    Pull the latest name/email/avatar/gender into the session.
    Call after a profile edit; the server never pushes changes into sessions.
    """
    fresh, token = session_service.refresh_claims(store, claims.id, signer=signer)
    _set_session_cookie(response, token)
    return {"access_token": token, "token_type": "bearer", "user": fresh}


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response):
    # Stateless tokens: nothing to revoke server-side, just drop the cookie
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Signed out"}


# ── Forgot / Reset Password ───────────────────────────────────────────────────

@router.post("/forgot-password/verify", response_model=OTPSentResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    store: CredentialStore = Depends(get_credential_store),
    mailer: Mailer = Depends(get_mailer),
):
    challenge = await password_reset_service.request_password_reset(
        store, mailer, name=body.name, email=body.email
    )
    return {"message": "OTP sent successfully", "hash": challenge.token}


@router.post("/forgot-password/reset", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    store: CredentialStore = Depends(get_credential_store),
):
    password_reset_service.complete_password_reset(
        store,
        email=body.email,
        code=body.otp,
        token=body.hash,
        new_password=body.new_password,
    )
    return {"message": "Password reset successfully"}
