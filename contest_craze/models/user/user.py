from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """User roles, stored verbatim in the users collection"""
    NORMAL_USER = "Normal User"
    CONTEST_CREATOR = "Contest Creator"
    ADMIN = "Admin"


class UserCreate(BaseModel):
    """Schema for first-time registration"""
    email: EmailStr
    name: Optional[str] = Field(None, max_length=100)
    photo: Optional[str] = None
    # Admin cannot be self-assigned, see UserService.register
    role: Optional[UserRole] = None


class ProfileUpdate(BaseModel):
    """Schema for profile edits (only these fields are user-editable)"""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    photo: Optional[str] = None
    address: Optional[str] = Field(None, max_length=300)


class RoleUpdate(BaseModel):
    """Schema for an admin changing a user's role"""
    role: UserRole


class UserInDB(BaseModel):
    """Schema for user stored in database"""
    email: EmailStr
    name: Optional[str] = None
    photo: Optional[str] = None
    role: UserRole = UserRole.NORMAL_USER
    wins: int = Field(0, ge=0)
    participatedCount: int = Field(0, ge=0)
    winPercentage: float = 0.0
    bio: str = ""
    address: str = ""
    createdAt: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        use_enum_values = True


def win_percentage(wins: int, participated_count: int) -> float:
    """100 x wins / participatedCount, 0 when the user never participated"""
    if not participated_count or participated_count <= 0:
        return 0.0
    return (wins / participated_count) * 100
