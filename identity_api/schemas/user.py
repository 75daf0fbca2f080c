"""
User schemas: profile views, profile updates, address completion and uploads.
"""
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from identity_api.models.user import Gender
from identity_api.schemas.auth import normalise_gender


class UserOut(BaseModel):
    """
    Public-safe user representation.
    hashed_password is never included; only the fields declared here are exposed.
    """
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    gender: Gender
    avatar_url: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None
    postal_code: Optional[str] = None
    is_address_complete: bool
    created_at: Optional[datetime] = None

    # UUID → str conversion for JSON serialization
    @field_validator("id", mode="before")
    @classmethod
    def uuid_to_str(cls, v) -> str:
        return str(v)


class SignupResponse(BaseModel):
    message: str = "User created successfully"
    user: UserOut


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    gender: Optional[Gender] = None
    avatar: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v

    @field_validator("gender", mode="before")
    @classmethod
    def gender_alias(cls, v):
        return normalise_gender(v)


class ProfileUpdateResponse(BaseModel):
    message: str = "Profile updated successfully"
    user: UserOut


class AddressCompleteRequest(BaseModel):
    state: str
    city: str
    postal_code: str

    @field_validator("state", "city", "postal_code")
    @classmethod
    def required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("State, City and Postal code are required")
        return v


class ImageUploadResponse(BaseModel):
    secure_url: str
    public_id: str


class DocumentUploadResponse(BaseModel):
    secure_url: str
    public_id: str
    file_name: Optional[str] = None


class ImageDeleteRequest(BaseModel):
    url: str


class ImageDeleteResponse(BaseModel):
    success: bool = True
    message: str
    result: str
