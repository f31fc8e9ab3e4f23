# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


# -- Requests --------------------------------------------------------------


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=8, max_length=256)
    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr


class LoginRequest(BaseModel):
    username: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    password: str = Field(min_length=8, max_length=256)


# -- Responses -------------------------------------------------------------


class PublicUser(BaseModel):
    """Author / member profile fields safe to show to other users."""

    id: int
    username: str
    full_name: str

    model_config = {"from_attributes": True}


class UserInfoResponse(BaseModel):
    id: int
    username: str
    full_name: str
    email: str
    role: str

    model_config = {"from_attributes": True}


class SessionUserResponse(UserInfoResponse):
    # Onboarding hint for the client; true only for the session opened by /register
    is_new_user: bool = False


class MessageResponse(BaseModel):
    message: str
    # Present only when EXPOSE_RESET_TOKEN is enabled (development)
    token: Optional[str] = None


class SuccessResponse(BaseModel):
    success: bool = True
