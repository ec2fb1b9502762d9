import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError
from typing import List, Dict
from datetime import datetime

from contest_craze.core.config import settings
from contest_craze.core.exceptions import NotFound, InvalidState, StoreError
from contest_craze.models.contest.contest import ContestStatus
from contest_craze.models.contest.participation import ParticipationCreate
from contest_craze.utils.dates import coerce_datetime
from contest_craze.utils.params import to_object_id

logger = logging.getLogger(__name__)


class ParticipationService:
    """Service for contest entries and their denormalized counters"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.participations = db[settings.participations_collection]
        self.contests = db[settings.contests_collection]
        self.users = db[settings.users_collection]

    async def is_registered(self, contest_id: str, email: str) -> bool:
        """Whether `email` has entered the contest"""
        participation = await self.participations.find_one({
            "contestId": contest_id,
            "participantEmail": email
        })
        return participation is not None

    async def record_participation(self, info: ParticipationCreate) -> Dict:
        """
        Record a payment-confirmed entry.

        Flow:
        1. Validate the contest is open (Confirmed, deadline not passed)
        2. Insert the participation with countersApplied=False
        3. Increment Contest.participantsCount and User.participatedCount
        4. Flip countersApplied

        If step 3 or 4 fails the flag stays False and ReconciliationService
        recounts both counters from this collection.
        """
        contest_oid = to_object_id(info.contest_id)
        contest = await self.contests.find_one({"_id": contest_oid})
        if not contest:
            raise NotFound("Contest not found")

        if contest.get("status") != ContestStatus.CONFIRMED.value:
            raise InvalidState("Contest is not open for registration")

        deadline = coerce_datetime(contest.get("deadline"))
        if deadline and datetime.utcnow() >= deadline:
            raise InvalidState("Contest has ended. Registration is closed.")

        contest_id = str(contest_oid)
        if await self.is_registered(contest_id, info.participant_email):
            raise InvalidState("Already registered for this contest")

        participation = {
            "contestId": contest_id,
            "participantEmail": info.participant_email,
            "participantName": info.participant_name,
            "transactionId": info.transaction_id,
            "price": info.price if info.price is not None else contest.get("price", 0),
            "paidAt": datetime.utcnow(),
            "countersApplied": False
        }

        try:
            result = await self.participations.insert_one(participation)
        except DuplicateKeyError:
            raise InvalidState("Already registered for this contest")

        try:
            await self.contests.update_one({"_id": contest_oid}, {"$inc": {"participantsCount": 1}})
            await self.users.update_one(
                {"email": info.participant_email},
                {"$inc": {"participatedCount": 1}}
            )
            await self.participations.update_one(
                {"_id": result.inserted_id},
                {"$set": {"countersApplied": True}}
            )
        except PyMongoError as e:
            logger.error(
                "[ERROR] Participation %s recorded but counters not applied: %s",
                result.inserted_id, e
            )
            raise StoreError("Participation recorded; counter update pending reconciliation")

        logger.info("[OK] %s joined contest %s", info.participant_email, contest_id)
        return {"insertedId": result.inserted_id}

    async def get_participations_by_user(self, email: str) -> List[Dict]:
        """
        Participations of a user, each enriched with the contest's
        name/deadline/image (one batched lookup, merged in memory by id string).
        """
        participations = await self.participations.find(
            {"participantEmail": email}
        ).to_list(length=None)

        contest_ids = []
        for p in participations:
            try:
                contest_ids.append(to_object_id(p["contestId"]))
            except NotFound:
                continue

        contests = await self.contests.find(
            {"_id": {"$in": contest_ids}},
            {"name": 1, "deadline": 1, "image": 1}
        ).to_list(length=None)
        by_id = {str(c["_id"]): c for c in contests}

        merged = []
        for p in participations:
            detail = by_id.get(str(p.get("contestId")), {})
            merged.append({
                **p,
                "contestName": detail.get("name"),
                "deadline": detail.get("deadline"),
                "image": detail.get("image")
            })
        return merged
