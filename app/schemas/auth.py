from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional
from datetime import datetime


class RegisterRequest(BaseModel):
    """Username/password registration request"""
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6)
    confirm_password: Optional[str] = Field(None, alias="confirmPassword")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("username")
    def username_charset(cls, v):
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Username must be at least 3 characters")
        if any(ch.isspace() for ch in v):
            raise ValueError("Username must not contain whitespace")
        return v

    @field_validator("confirm_password")
    def passwords_match(cls, v, info):
        password = info.data.get("password") if info and info.data else None
        if v is not None and password and v != password:
            raise ValueError("Passwords do not match")
        return v


class LoginRequest(BaseModel):
    """Username/password login request"""
    username: str
    password: str


class TokenResponse(BaseModel):
    """Token response (access + refresh)"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    user_id: int
    username: str


class RefreshTokenRequest(BaseModel):
    """Request to refresh access token"""
    refresh_token: str


class UserResponse(BaseModel):
    """Current user profile response"""
    id: int
    username: str
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    active_session_id: Optional[int] = None  # session a viewer channel is bound to, if any

    model_config = ConfigDict(from_attributes=True)
