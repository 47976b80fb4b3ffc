from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from resumecraft.types import UserRole

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")
_URL_PATTERN = re.compile(r"^https?://[^\s/$.?#].[^\s]*$", re.IGNORECASE)


def _validate_email(value: str) -> str:
    value = value.strip()
    if not _EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email address")
    return value.lower()


def _validate_optional_url(value: str | None) -> str | None:
    if value is None or value == "":
        return value
    value = value.strip()
    if not _URL_PATTERN.match(value):
        raise ValueError("Must be a valid URL")
    return value


class SignupRequest(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    email: str
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: str
    bio: str
    avatar: str
    address: str
    phone: str
    website: str
    linkedin: str
    request_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    bio: str | None = Field(default=None, max_length=500)
    avatar: str | None = None
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    website: str | None = None
    linkedin: str | None = None

    @field_validator("avatar", "website", "linkedin")
    @classmethod
    def validate_urls(cls, value: str | None) -> str | None:
        return _validate_optional_url(value)


class ApplicationSubmitRequest(BaseModel):
    resume: str = Field(description="Resume as a data URI: data:<mimetype>;base64,<data>")
    job_description: str


class RequestSummaryResponse(BaseModel):
    id: int
    job_description: str
    created_at: datetime | None = None


class AdminRequestResponse(BaseModel):
    id: int
    user_id: int
    user_email: str
    request_hash: str
    job_description: str
    skills: list[str]
    created_at: datetime | None = None


class TemplateRequest(BaseModel):
    name: str = Field(min_length=2)
    description: str = Field(min_length=10)
    image_url: str
    image_hint: str = ""
    latex_code: str = Field(min_length=20)
    is_default: bool = False

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return value.strip()

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, value: str) -> str:
        if not value:
            raise ValueError("Must be a valid URL")
        return _validate_optional_url(value) or ""


class TemplateUpdateRequest(TemplateRequest):
    is_default: bool | None = None


class TemplateResponse(BaseModel):
    id: int
    name: str
    description: str
    image_url: str
    image_hint: str
    latex_code: str
    is_default: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class AdminUserCreateRequest(BaseModel):
    name: str = Field(min_length=2)
    email: str
    password: str = Field(min_length=6)
    role: UserRole = "user"
    avatar: str = ""

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator("avatar")
    @classmethod
    def validate_avatar(cls, value: str) -> str:
        return _validate_optional_url(value) or ""


class AdminUserUpdateRequest(BaseModel):
    name: str = Field(min_length=2)
    email: str
    password: str | None = None
    role: UserRole
    avatar: str = ""

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        if value and len(value) < 6:
            raise ValueError("Password must be at least 6 characters")
        return value or None

    @field_validator("avatar")
    @classmethod
    def validate_avatar(cls, value: str) -> str:
        return _validate_optional_url(value) or ""


class MessageResponse(BaseModel):
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
