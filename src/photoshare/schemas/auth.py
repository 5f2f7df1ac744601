from datetime import datetime
from uuid import UUID

from pydantic import EmailStr, Field, field_validator

from photoshare.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    # Free text on purpose: anything other than "creator" registers a consumer
    role: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserResponse(CamelModel):
    id: UUID
    name: str
    email: EmailStr
    role: str
    avatar: str
    bio: str
    photos_count: int
    likes_received: int
    created_at: datetime


class PublicUserResponse(CamelModel):
    """Profile as shown to other users. No email."""

    id: UUID
    name: str
    role: str
    avatar: str
    bio: str
    photos_count: int
    likes_received: int
    created_at: datetime


class AuthResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    user: UserResponse


class ProfileResponse(CamelModel):
    success: bool = True
    user: UserResponse


class PublicProfileResponse(CamelModel):
    success: bool = True
    user: PublicUserResponse


class ProfileUpdateRequest(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    bio: str | None = Field(None, max_length=1000)
    avatar: str | None = Field(None, max_length=500)
