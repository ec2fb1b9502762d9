from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Dict

from contest_craze.core.config import settings
from contest_craze.core.exceptions import Forbidden
from contest_craze.models.user.user import UserRole


class AuthorizationPolicy:
    """
    Role and ownership checks.

    Roles are read from the users collection on every call, so a role change
    takes effect on the next request.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users = db[settings.users_collection]

    async def require_role(self, identity: str, role: UserRole) -> Dict:
        """Return the caller's user document, Forbidden unless it holds `role`"""
        user = await self.users.find_one({"email": identity})
        if not user or user.get("role") != role.value:
            raise Forbidden()
        return user

    @staticmethod
    def require_self(identity: str, target_email: str) -> None:
        """Forbidden unless the caller is acting on their own resources"""
        if identity != target_email:
            raise Forbidden()
