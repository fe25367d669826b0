from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime

from models.users import ROLE_CASHIER

RoleName = Literal["admin", "cashier", "customer"]

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for self-registration. New accounts are always customers.
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    first_name: Optional[str] = None
    last_name: Optional[str] = None

# Staff account created by an admin
class StaffCreate(UserCreate):
    role: RoleName = ROLE_CASHIER

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

# Schema for administrative role updates
class RoleUpdate(BaseModel):
    role: RoleName
