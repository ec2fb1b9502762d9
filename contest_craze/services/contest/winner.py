import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError
from typing import Optional, Dict
from datetime import datetime

from contest_craze.core.config import settings
from contest_craze.core.exceptions import NotFound, Forbidden, InvalidState, StoreError
from contest_craze.models.contest.contest import ContestStatus
from contest_craze.models.user.user import win_percentage
from contest_craze.utils.dates import coerce_datetime
from contest_craze.utils.params import to_object_id

logger = logging.getLogger(__name__)


class WinnerService:
    """
    End-of-contest workflow: close the contest with its winner and update the
    winner's statistics.

    The contest write is a single conditional update (winner must still be
    absent), so two concurrent declarations cannot both succeed. The user
    statistics are a second document; the contest carries
    winner.statsApplied until they are written, and ReconciliationService
    finishes any declaration whose statistics write did not complete.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.contests = db[settings.contests_collection]
        self.users = db[settings.users_collection]
        self.submissions = db[settings.submissions_collection]

    @staticmethod
    def is_eligible(contest: Dict, now: datetime) -> bool:
        """Confirmed, deadline passed and no winner yet"""
        if contest.get("status") != ContestStatus.CONFIRMED.value:
            return False
        deadline = coerce_datetime(contest.get("deadline"))
        if deadline is None or now < deadline:
            return False
        return not contest.get("winner")

    async def declare_winner(
        self,
        contest_id: str,
        caller_email: str,
        winner_email: str,
        submission_id: Optional[str] = None
    ) -> Dict:
        """
        Declare the winner of a contest.

        Flow:
        1. Contest must exist and belong to the caller
        2. Eligibility: Confirmed, deadline passed, winner not set
        3. Winner must be a registered user (and own submission_id, if given)
        4. ATOMIC: set winner + Closed only if winner is still absent
        5. Winner statistics: wins +1, winPercentage recomputed
        """
        oid = to_object_id(contest_id)
        now = datetime.utcnow()

        contest = await self.contests.find_one({"_id": oid})
        if not contest:
            raise NotFound("Contest not found")

        if contest.get("creatorEmail") != caller_email:
            raise Forbidden("Only the contest creator can declare the winner")

        if not self.is_eligible(contest, now):
            raise InvalidState("Contest must be confirmed, ended and without a winner.")

        winner_user = await self.users.find_one({"email": winner_email})
        if not winner_user:
            raise NotFound("Winner user not found")

        if submission_id:
            submission = await self.submissions.find_one({
                "_id": to_object_id(submission_id, "Submission"),
                "contestId": str(oid),
                "participantEmail": winner_email
            })
            if not submission:
                raise NotFound("Submission not found for this winner")

        winner = {
            "email": winner_user["email"],
            "name": winner_user.get("name"),
            "photo": winner_user.get("photo"),
            # Prize is fixed at declaration time
            "prizeMoney": contest.get("prizeMoney"),
            "submissionId": submission_id,
            "declaredAt": now,
            "statsApplied": False
        }

        result = await self.contests.update_one(
            {
                "_id": oid,
                "creatorEmail": caller_email,
                "winner": None,
                "status": ContestStatus.CONFIRMED.value
            },
            {"$set": {
                "winner": winner,
                "status": ContestStatus.CLOSED.value,
                "closedAt": now,
                "updatedAt": now
            }}
        )

        if result.matched_count == 0:
            # Another declaration won the race between our read and this write
            raise InvalidState("Winner has already been declared for this contest")

        logger.info("[OK] Contest %s closed, winner %s", contest_id, winner_email)

        try:
            await self.apply_winner_statistics(oid, winner_email)
        except PyMongoError as e:
            logger.error(
                "[ERROR] Winner recorded for contest %s but statistics for %s not updated: %s",
                contest_id, winner_email, e
            )
            raise StoreError("Winner declared; statistics update pending reconciliation")

        return {
            "matchedCount": result.matched_count,
            "modifiedCount": result.modified_count,
            "winner": {k: v for k, v in winner.items() if k != "statsApplied"}
        }

    async def apply_winner_statistics(self, contest_oid, winner_email: str) -> Optional[Dict]:
        """
        wins += 1, then winPercentage from the post-increment wins and the
        current participatedCount, then mark the contest's winner as applied.
        """
        user = await self.users.find_one_and_update(
            {"email": winner_email},
            {"$inc": {"wins": 1}},
            return_document=ReturnDocument.AFTER
        )
        if user is None:
            logger.warning("[WARN] Winner %s disappeared before statistics update", winner_email)
            return None

        percentage = win_percentage(user.get("wins", 0), user.get("participatedCount", 0))
        await self.users.update_one(
            {"email": winner_email},
            {"$set": {"winPercentage": percentage}}
        )
        await self.contests.update_one(
            {"_id": contest_oid},
            {"$set": {"winner.statsApplied": True}}
        )

        user["winPercentage"] = percentage
        return user
