"""
Pydantic schemas for authentication endpoints.
Defines request models for registration, login and password change.
"""
from pydantic import BaseModel, EmailStr, Field, field_validator

class RegisterIn(BaseModel):
    """
    Request model for account registration.
    """
    email: EmailStr  # Login identity (normalised to lower case)
    password: str = Field(min_length=8, max_length=256)  # Plain text, hashed server-side
    name: str = Field(min_length=1, max_length=128)  # Display name

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

class LoginIn(BaseModel):
    """
    Request model for email/password login.
    """
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.strip().lower()

class ChangePasswordIn(BaseModel):
    currentPassword: str = Field(min_length=1)
    newPassword: str = Field(min_length=8, max_length=256)
