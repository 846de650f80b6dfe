"""
Auth-related Pydantic schemas for request/response validation.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AccountSignup(BaseModel):
    """Schema for account signup request."""
    email: EmailStr
    password: str = Field(min_length=6)


class AccountSignin(BaseModel):
    """Schema for signin request."""
    email: EmailStr
    password: str


class Token(BaseModel):
    """Schema for token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class TokenRefresh(BaseModel):
    """Schema for token refresh request."""
    refresh_token: str


class OutletSummary(BaseModel):
    id: int
    name: str
    address: str
    status: str
    open_at: Optional[str] = None
    closed_at: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    """The caller's profile together with the outlets their role scopes them to."""
    id: int
    account_id: int
    fullname: str
    email: str
    role: str
    address: Optional[str] = None
    phone: Optional[str] = None
    outlets: List[OutletSummary] = []

    model_config = ConfigDict(from_attributes=True)
