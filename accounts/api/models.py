"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Passwords are plain strings here: their length policy is configurable and
enforced by the domain, which reports violations as InvalidPassword (400).
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from accounts.domain.models import User

LOGIN_PATTERN = r"^[_.@A-Za-z0-9-]+$"


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    login: str = Field(..., min_length=1, max_length=50, pattern=LOGIN_PATTERN)
    email: EmailStr
    password: str = Field(..., description="User password (length policy is configurable)")
    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    lang_key: str = Field(default="en", min_length=2, max_length=10)


class UpdateAccountRequest(BaseModel):
    """Request model for updating the current user's profile."""

    first_name: str | None = Field(default=None, max_length=50)
    last_name: str | None = Field(default=None, max_length=50)
    email: EmailStr
    lang_key: str = Field(default="en", min_length=2, max_length=10)


class PasswordChangeRequest(BaseModel):
    """Request model for changing the current user's password."""

    current_password: str
    new_password: str


class ResetPasswordInitRequest(BaseModel):
    """Request model for starting a password reset."""

    # Not EmailStr: any string is accepted and answered identically.
    email: str = Field(..., max_length=254)


class KeyAndPasswordRequest(BaseModel):
    """Request model for finishing a password reset."""

    key: str
    new_password: str


class AccountResponse(BaseModel):
    """Current user as exposed to its owner. Never carries secrets."""

    login: str
    email: str
    first_name: str | None
    last_name: str | None
    lang_key: str
    activated: bool
    authorities: list[str]
    created_at: datetime | None

    @classmethod
    def from_user(cls, user: User) -> "AccountResponse":
        return cls(
            login=user.login,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            lang_key=user.lang_key,
            activated=user.activated,
            authorities=sorted(user.authorities),
            created_at=user.created_at,
        )


class MessageResponse(BaseModel):
    """Generic success response."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
