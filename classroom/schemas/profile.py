from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from classroom.models.profile import RoleType


class RegisterRequest(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)
    role: RoleType = RoleType.STUDENT


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: RoleType


class ProfileResponse(BaseModel):
    id: int
    email: str
    full_name: str
    role: RoleType
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdateRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    avatar_url: Optional[str] = None


class AdminCreateUserRequest(BaseModel):
    email: EmailStr
    full_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8)
    role: RoleType = RoleType.STUDENT


class AdminUpdateUserRequest(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1)
    role: Optional[RoleType] = None
