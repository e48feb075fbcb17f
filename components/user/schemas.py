"""Pydantic schemas for user data."""

from typing import Optional
from pydantic import BaseModel


class Profile(BaseModel):
    """Schema for the caller's profile."""
    id: int
    full_name: str
    phone: Optional[str] = None
    email: str
    balance_cents: int

    class Config:
        from_attributes = True


class ProfileResponse(BaseModel):
    profile: Profile


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    """Schema for login response with JWT token."""
    token: str
    token_type: str = "bearer"
    profile: Profile
