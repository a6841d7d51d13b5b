import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from app.utils.security import password_problems

_PHONE = re.compile(r"^\+?[\d\s\-()]{7,20}$")


def _check_name(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if len(value) < 2:
        raise ValueError(f"{label} must be at least 2 characters long")
    return value


def _check_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        return None
    if not _PHONE.match(value):
        raise ValueError("Phone number is invalid")
    return value


def _check_password(value: str) -> str:
    problems = password_problems(value)
    if problems:
        raise ValueError("; ".join(problems))
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRegister(CamelModel):
    """Payload for customer registration."""
    email: EmailStr = Field(..., description="Login email, stored lower-cased")
    password: str = Field(..., description="At least 6 characters with upper, lower and a digit")
    first_name: str
    last_name: str
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _check_password(v)

    @field_validator("first_name")
    @classmethod
    def first_name_length(cls, v: str) -> str:
        return _check_name(v, "First name")

    @field_validator("last_name")
    @classmethod
    def last_name_length(cls, v: str) -> str:
        return _check_name(v, "Last name")

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)


class TechnicianRegister(UserRegister):
    skills: List[str] = Field(default_factory=list)

    @field_validator("skills")
    @classmethod
    def clean_skills(cls, v: List[str]) -> List[str]:
        return [s.strip() for s in v if s and s.strip()]


class UserLogin(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def first_name_length(cls, v: Optional[str]) -> Optional[str]:
        return _check_name(v, "First name")

    @field_validator("last_name")
    @classmethod
    def last_name_length(cls, v: Optional[str]) -> Optional[str]:
        return _check_name(v, "Last name")

    @field_validator("phone")
    @classmethod
    def phone_format(cls, v: Optional[str]) -> Optional[str]:
        return _check_phone(v)


class PasswordChange(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        return _check_password(v)


class UserRead(CamelModel):
    """User as returned to clients. Never carries the password hash."""
    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: str
    is_active: bool
    skills: Optional[List[str]] = None
    is_verified: bool = False
    rating: float = 0.0
    created_at: Optional[datetime] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserSummary(CamelModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AuthPayload(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserRead
