from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    display_name: str = Field(..., min_length=1)
    # Admins are provisioned out of band, never through sign-up
    role: Literal["organizer", "participant"] = "participant"


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1)
    photo_url: Optional[str] = None

    class Config:
        extra = "ignore"


class PasswordForgot(BaseModel):
    email: EmailStr


class PasswordReset(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=6, max_length=6)
    new_password: str = Field(..., min_length=6)


def serialize_user(user) -> dict:
    return {
        "uid": user.uid,
        "email": user.email,
        "display_name": user.display_name,
        "role": user.role,
        "photo_url": user.photo_url,
        "created_at": user.created_at,
        "last_login": user.last_login,
    }
