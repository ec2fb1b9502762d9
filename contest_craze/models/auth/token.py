from pydantic import BaseModel, EmailStr
from typing import Optional


class TokenRequest(BaseModel):
    """Identity already verified by the upstream identity provider"""
    email: EmailStr
    name: Optional[str] = None


class TokenData(BaseModel):
    """Token payload data"""
    email: Optional[str] = None
