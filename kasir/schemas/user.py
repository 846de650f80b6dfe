"""
User provisioning schemas.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreateBase(BaseModel):
    fullname: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    address: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, max_length=50)


class ManagerCreate(UserCreateBase):
    outlet_id: int = Field(gt=0)


class StaffCreate(UserCreateBase):
    """Owners must pick the outlet; managers always provision into their own."""
    outlet_id: Optional[int] = Field(default=None, gt=0)


class AddUserToOutlet(BaseModel):
    user_id: int = Field(gt=0)
    outlet_id: int = Field(gt=0)


class UserResponse(BaseModel):
    id: int
    account_id: int
    fullname: str
    email: str
    role: str
    address: Optional[str] = None
    phone: Optional[str] = None
    outlet_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class UserOutletResponse(BaseModel):
    id: int
    user_id: int
    outlet_id: int

    model_config = ConfigDict(from_attributes=True)


class UserUpdate(BaseModel):
    """Partial profile update for a manager or staff member; the role never changes."""
    fullname: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(default=None, min_length=6)
    address: Optional[str] = Field(default=None, max_length=500)
    phone: Optional[str] = Field(default=None, max_length=50)
