import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from typing import Optional, List, Dict, Tuple

from contest_craze.core.config import settings
from contest_craze.core.exceptions import NotFound, InvalidState
from contest_craze.models.user.user import (
    UserCreate,
    UserInDB,
    UserRole,
    ProfileUpdate
)

logger = logging.getLogger(__name__)

# Never sent back to clients
PRIVATE_FIELDS = {"password": 0}


class UserService:
    """Service for the user directory (registration, profile, roles)"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users = db[settings.users_collection]

    async def get_user_by_email(self, email: str) -> Optional[Dict]:
        """Get user by email"""
        return await self.users.find_one({"email": email}, PRIVATE_FIELDS)

    async def register(self, user_data: UserCreate) -> Tuple[Dict, bool]:
        """
        Register a user on first sign-in.

        Idempotent: an existing email returns the stored record untouched and
        created=False. Admin cannot be self-assigned; it falls back to
        Normal User and an admin promotes the account later.
        """
        existing = await self.get_user_by_email(user_data.email)
        if existing:
            return existing, False

        role = user_data.role or UserRole.NORMAL_USER
        if role == UserRole.ADMIN:
            logger.warning("[WARN] Admin role requested at registration by %s, using Normal User", user_data.email)
            role = UserRole.NORMAL_USER

        user = UserInDB(
            email=user_data.email,
            name=user_data.name,
            photo=user_data.photo,
            role=role
        ).model_dump()

        try:
            result = await self.users.insert_one(user)
        except DuplicateKeyError:
            # Lost a registration race for the same email
            existing = await self.get_user_by_email(user_data.email)
            return existing, False

        user["_id"] = result.inserted_id
        logger.info("[OK] Registered user %s as %s", user["email"], user["role"])
        return user, True

    async def list_users(self) -> List[Dict]:
        """All users (admin management screen)"""
        return await self.users.find({}, PRIVATE_FIELDS).to_list(length=None)

    async def get_role(self, email: str) -> str:
        """Stored role, Normal User when the record is missing"""
        user = await self.users.find_one({"email": email}, {"role": 1})
        return (user or {}).get("role") or UserRole.NORMAL_USER.value

    async def update_profile(self, email: str, profile_data: ProfileUpdate) -> Dict:
        """Update name/photo/address, nothing else is user-editable"""
        update_data = profile_data.model_dump(exclude_none=True)
        if not update_data:
            raise InvalidState("No fields to update")

        result = await self.users.update_one({"email": email}, {"$set": update_data})
        if result.matched_count == 0:
            raise NotFound("User not found")

        return {
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count
        }

    async def set_role(self, email: str, role: UserRole) -> Dict:
        """Admin action: change a user's role"""
        result = await self.users.update_one({"email": email}, {"$set": {"role": role.value}})
        if result.matched_count == 0:
            raise NotFound("User not found")

        logger.info("[OK] Role of %s set to %s", email, role.value)
        return {
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count
        }
