from typing import Annotated, Optional
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from motor.motor_asyncio import AsyncIOMotorDatabase

from contest_craze.core.exceptions import Unauthorized
from contest_craze.database import get_database
from contest_craze.models.user.user import UserRole
from contest_craze.services.auth.authorization import AuthorizationPolicy
from contest_craze.services.auth.security import security_service

# Bearer scheme, the cookie fallback is handled in get_current_email
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/jwt", auto_error=False)


async def get_current_email(
    request: Request,
    token: Annotated[Optional[str], Depends(oauth2_scheme)]
) -> str:
    """Verified identity of the caller (Authorization header first, then the `token` cookie)"""
    if not token:
        token = request.cookies.get("token")

    if not token:
        raise Unauthorized()

    token_data = security_service.verify_token(token)
    if token_data is None or token_data.email is None:
        raise Unauthorized()

    return token_data.email


async def require_admin(
    email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> str:
    """Caller must hold the Admin role"""
    await AuthorizationPolicy(db).require_role(email, UserRole.ADMIN)
    return email


async def require_creator(
    email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
) -> str:
    """Caller must hold the Contest Creator role"""
    await AuthorizationPolicy(db).require_role(email, UserRole.CONTEST_CREATOR)
    return email
