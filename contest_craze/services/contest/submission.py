import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional, List, Dict
from datetime import datetime

from contest_craze.core.config import settings
from contest_craze.core.exceptions import NotRegistered
from contest_craze.models.contest.submission import SubmissionCreate
from contest_craze.utils.params import to_object_id

logger = logging.getLogger(__name__)

UNKNOWN_PARTICIPANT = "Unknown User"


class SubmissionService:
    """Service for participant submissions"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.submissions = db[settings.submissions_collection]
        self.participations = db[settings.participations_collection]
        self.contests = db[settings.contests_collection]
        self.users = db[settings.users_collection]

    async def create_submission(self, info: SubmissionCreate) -> Dict:
        """Insert a submission; the participant must have entered the contest"""
        is_registered = await self.participations.find_one({
            "contestId": info.contest_id,
            "participantEmail": info.participant_email
        })
        if not is_registered:
            raise NotRegistered()

        user = await self.users.find_one({"email": info.participant_email}, {"name": 1})

        submission = {
            **info.model_dump(by_alias=True),
            "participantName": (user or {}).get("name") or UNKNOWN_PARTICIPANT,
            "submittedAt": datetime.utcnow()
        }

        result = await self.submissions.insert_one(submission)
        logger.info("[OK] Submission %s for contest %s", result.inserted_id, info.contest_id)
        return {"insertedId": result.inserted_id}

    async def get_submissions_for_creator(
        self,
        creator_email: str,
        contest_id: Optional[str] = None
    ) -> List[Dict]:
        """Submissions to a creator's contests (optionally one contest), with contestName merged in"""
        contest_query = {"creatorEmail": creator_email}
        if contest_id:
            contest_query["_id"] = to_object_id(contest_id)

        creator_contests = await self.contests.find(contest_query, {"name": 1}).to_list(length=None)
        by_id = {str(c["_id"]): c for c in creator_contests}

        if not by_id:
            return []

        submissions = await self.submissions.find(
            {"contestId": {"$in": list(by_id.keys())}}
        ).to_list(length=None)

        return [
            {
                **sub,
                "contestName": by_id.get(sub.get("contestId"), {}).get("name") or sub.get("contestName")
            }
            for sub in submissions
        ]
