from identity_api.schemas.auth import (
    SessionClaims, SendOTPRequest, SignupRequest, SignInRequest,
    ForgotPasswordRequest, ResetPasswordRequest, OTPSentResponse,
    SignInResponse, SessionResponse, MessageResponse,
)
from identity_api.schemas.user import (
    UserOut, SignupResponse, ProfileUpdateRequest, ProfileUpdateResponse,
    AddressCompleteRequest, ImageUploadResponse, ImageDeleteRequest, ImageDeleteResponse,
    DocumentUploadResponse,
)
from identity_api.schemas.mail import MailAttachment, MailSendRequest, MailSendResponse
