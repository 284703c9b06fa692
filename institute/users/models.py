from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from institute.core.permissions import Role


def normalize_email(value):
    """Emails are stored trimmed and lower-cased so lookups are case-insensitive"""
    if isinstance(value, str):
        return value.strip().lower()
    return value


# ==================== REQUEST MODELS ====================

class SignupRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = Role.STUDENT
    contact_info: str = Field(..., min_length=10)
    profile_picture: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v):
        return normalize_email(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v):
        return normalize_email(v)


class ResendVerificationRequest(BaseModel):
    email: EmailStr

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v):
        return normalize_email(v)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    contact_info: Optional[str] = Field(None, min_length=10)
    profile_picture: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class TeacherCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    contact_info: str = Field(..., min_length=10)
    profile_picture: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v):
        return normalize_email(v)


# ==================== RESPONSE SHAPING ====================

def public_user(user: dict) -> dict:
    """User document without secrets"""
    return {
        "user_id": user["user_id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role"),
        "contact_info": user.get("contact_info"),
        "profile_picture": user.get("profile_picture"),
        "is_email_verified": user.get("is_email_verified", False),
        "created_by": user.get("created_by"),
        "created_at": user.get("created_at"),
        "updated_at": user.get("updated_at"),
    }


def user_summary(user: dict) -> dict:
    return {
        "user_id": user["user_id"],
        "name": user.get("name"),
        "email": user.get("email"),
        "role": user.get("role"),
    }
