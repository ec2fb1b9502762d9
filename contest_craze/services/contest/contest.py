import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING
from typing import Optional, List, Dict, Tuple
from datetime import datetime
from bson import ObjectId

from contest_craze.core.config import settings
from contest_craze.core.exceptions import NotFound, Forbidden, InvalidState
from contest_craze.models.contest.contest import ContestStatus, ContestCreate, ContestUpdate
from contest_craze.utils.params import to_object_id

logger = logging.getLogger(__name__)

POPULAR_LIMIT = 6


class ContestService:
    """Service for the contest lifecycle (create, edit, review, listings)"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.contests = db[settings.contests_collection]
        self.users = db[settings.users_collection]

    async def create_contest(self, contest_data: ContestCreate, creator_email: str) -> Dict:
        """Create a new contest, always Pending until an admin reviews it"""
        creator = await self.users.find_one({"email": creator_email}) or {}
        now = datetime.utcnow()

        contest = {
            **contest_data.model_dump(by_alias=True),
            "creatorEmail": creator_email,
            "creatorName": creator.get("name"),
            "creatorPhoto": creator.get("photo"),
            "status": ContestStatus.PENDING.value,
            "participantsCount": 0,
            "createdAt": now,
            "updatedAt": now
        }

        result = await self.contests.insert_one(contest)
        contest["_id"] = result.inserted_id

        logger.info("[OK] Contest %s created by %s", result.inserted_id, creator_email)
        return contest

    async def get_contest(self, contest_id: str) -> Dict:
        """Get contest by ID"""
        contest = await self.contests.find_one({"_id": to_object_id(contest_id)})
        if not contest:
            raise NotFound("Contest not found")
        return contest

    async def _check_editable(self, oid: ObjectId, creator_email: str, action: str):
        """
        Raise the error for the first failing condition of an owner edit:
        missing contest, other owner, not Pending.
        """
        contest = await self.contests.find_one({"_id": oid}, {"creatorEmail": 1, "status": 1})
        if not contest:
            raise NotFound("Contest not found")
        if contest.get("creatorEmail") != creator_email:
            raise Forbidden(f"Only the contest creator can {action}")
        if contest.get("status") != ContestStatus.PENDING.value:
            raise InvalidState(f"Cannot {action} a contest once it is {contest.get('status')}")

    async def update_contest(
        self,
        contest_id: str,
        update_data: ContestUpdate,
        creator_email: str
    ) -> Dict:
        """Update contest (only owner, only in PENDING status)"""
        oid = to_object_id(contest_id)

        update_dict = update_data.model_dump(by_alias=True, exclude_none=True)
        if not update_dict:
            await self._check_editable(oid, creator_email, "edit")
            raise InvalidState("No fields to update")
        update_dict["updatedAt"] = datetime.utcnow()

        result = await self.contests.update_one(
            {"_id": oid, "creatorEmail": creator_email, "status": ContestStatus.PENDING.value},
            {"$set": update_dict}
        )

        if result.matched_count == 0:
            # Filtered write touched nothing, re-read to tell which condition failed
            await self._check_editable(oid, creator_email, "edit")
            raise InvalidState("Contest changed during the edit, retry")

        return {
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count
        }

    async def delete_contest(self, contest_id: str, creator_email: str) -> Dict:
        """Delete a contest (only owner, only in PENDING status)"""
        oid = to_object_id(contest_id)

        result = await self.contests.delete_one(
            {"_id": oid, "creatorEmail": creator_email, "status": ContestStatus.PENDING.value}
        )

        if result.deleted_count == 0:
            await self._check_editable(oid, creator_email, "delete")
            raise InvalidState("Contest changed during the delete, retry")

        logger.info("[OK] Contest %s deleted by %s", contest_id, creator_email)
        return {"deletedCount": result.deleted_count}

    async def set_status(self, contest_id: str, status: ContestStatus) -> Dict:
        """
        Admin review decision (Confirmed / Rejected).
        A Closed contest keeps its status, its winner is final.
        """
        oid = to_object_id(contest_id)

        result = await self.contests.update_one(
            {"_id": oid, "status": {"$ne": ContestStatus.CLOSED.value}},
            {"$set": {"status": status.value, "updatedAt": datetime.utcnow()}}
        )

        if result.matched_count == 0:
            exists = await self.contests.count_documents({"_id": oid})
            if not exists:
                raise NotFound("Contest not found")
            raise InvalidState("Contest is already closed")

        logger.info("[OK] Contest %s set to %s", contest_id, status.value)
        return {
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count
        }

    async def get_contests_by_creator(self, creator_email: str) -> List[Dict]:
        """All contests owned by a creator"""
        return await self.contests.find({"creatorEmail": creator_email}).to_list(length=None)

    async def get_approved_contests(self, contest_type: Optional[str] = None) -> List[Dict]:
        """Confirmed contests, most participants first, optionally of one type"""
        query = {"status": ContestStatus.CONFIRMED.value}
        if contest_type and contest_type != "All":
            query["type"] = contest_type

        cursor = self.contests.find(query, sort=[("participantsCount", DESCENDING)])
        return await cursor.to_list(length=None)

    async def get_popular_contests(self) -> List[Dict]:
        """Top confirmed contests by participants"""
        cursor = self.contests.find(
            {"status": ContestStatus.CONFIRMED.value},
            sort=[("participantsCount", DESCENDING)],
            limit=POPULAR_LIMIT
        )
        return await cursor.to_list(length=POPULAR_LIMIT)

    async def get_all_contests(self, page: int = 1, limit: int = 10) -> Tuple[List[Dict], int]:
        """Admin listing, one page of every contest plus the total count"""
        skip = (page - 1) * limit

        cursor = self.contests.find({}, skip=skip, limit=limit)
        contests = await cursor.to_list(length=limit)
        total = await self.contests.count_documents({})
        return contests, total

    async def get_contests_won_by(self, email: str) -> List[Dict]:
        """Contests whose declared winner is `email`"""
        return await self.contests.find({"winner.email": email}).to_list(length=None)
