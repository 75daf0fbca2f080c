"""Mail schemas: the authenticated send-mail endpoint."""
import base64
import binascii
from typing import Optional, Union

from pydantic import BaseModel, EmailStr, field_validator


class MailAttachment(BaseModel):
    filename: str
    # Base64-encoded file body
    content: str
    content_type: Optional[str] = None

    @field_validator("content")
    @classmethod
    def content_is_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Attachment content must be base64")
        return v


class MailSendRequest(BaseModel):
    to: list[EmailStr]
    subject: str
    html: str
    text: Optional[str] = None
    cc: Optional[list[EmailStr]] = None
    bcc: Optional[list[EmailStr]] = None
    reply_to: Optional[EmailStr] = None
    attachments: Optional[list[MailAttachment]] = None

    @field_validator("to", "cc", "bcc", mode="before")
    @classmethod
    def single_address_to_list(cls, v: Union[str, list, None]):
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("to")
    @classmethod
    def has_recipients(cls, v: list) -> list:
        if not v:
            raise ValueError("Recipient email(s) required")
        return v

    @field_validator("subject")
    @classmethod
    def subject_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Email subject required")
        return v

    @field_validator("html")
    @classmethod
    def html_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Email content (html) required")
        return v


class MailSendResponse(BaseModel):
    success: bool = True
    message_id: str
    # e.g. "143ms"
    duration: str
