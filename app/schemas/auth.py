"""Authentication schemas for Supabase JWT tokens."""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class JWTClaims(BaseModel):
    """Decoded claims of a Supabase access token."""

    sub: str = Field(..., description="Subject (Supabase user ID)")
    email: Optional[str] = Field(None, description="User email, when the token carries one")
    role: str = Field(default="authenticated", description="User role")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    iss: str = Field(..., description="Token issuer")
    aud: Optional[str] = Field(None, description="Audience")

    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")
    session_id: Optional[str] = Field(None, description="Session ID")


class CurrentUser(BaseModel):
    """Authenticated subject taken from a verified token."""

    id: str = Field(..., description="Supabase user ID")
    email: Optional[str] = Field(None, description="User email from the token")
    role: str = Field(default="authenticated", description="User role")


class UserResponse(BaseModel):
    """Internal user record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Internal user ID")
    supabase_user_id: str = Field(..., description="Supabase user ID")
    email: str = Field(..., description="Primary email at provisioning time")
    created_at: datetime = Field(..., description="Account creation timestamp")


__all__ = [
    "JWTClaims",
    "CurrentUser",
    "UserResponse",
]
