import logging
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Dict, Optional
from datetime import datetime, timedelta

from contest_craze.core.config import settings
from contest_craze.core.exceptions import NotFound
from contest_craze.models.contest.contest import ContestStatus
from contest_craze.models.user.user import win_percentage
from contest_craze.utils.params import to_object_id

logger = logging.getLogger(__name__)


class ReconciliationService:
    """
    Finishes multi-document writes that stopped half way.

    Pending work is marked on the first document written:
    - contests with winner.statsApplied == False
    - participations with countersApplied == False
    Every repair recounts from the source collections instead of
    incrementing, so running it again is harmless.

    A record younger than the grace window is in flight: its request may
    still apply the increment. A user or contest with an in-flight record is
    not recounted, its pending records wait for a later pass.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.contests = db[settings.contests_collection]
        self.participations = db[settings.participations_collection]
        self.users = db[settings.users_collection]

    async def user_has_in_flight_records(self, email: str, cutoff: datetime) -> bool:
        """Unapplied participation or winner statistics newer than the cutoff"""
        participation = await self.participations.find_one({
            "participantEmail": email,
            "countersApplied": False,
            "paidAt": {"$gt": cutoff}
        })
        if participation:
            return True

        contest = await self.contests.find_one({
            "winner.email": email,
            "winner.statsApplied": False,
            "winner.declaredAt": {"$gt": cutoff}
        })
        return contest is not None

    async def contest_has_in_flight_records(self, contest_id: str, cutoff: datetime) -> bool:
        participation = await self.participations.find_one({
            "contestId": contest_id,
            "countersApplied": False,
            "paidAt": {"$gt": cutoff}
        })
        return participation is not None

    async def recount_user_statistics(self, email: str) -> None:
        """Rebuild wins, participatedCount and winPercentage for one user"""
        wins = await self.contests.count_documents({
            "status": ContestStatus.CLOSED.value,
            "winner.email": email
        })
        participated = await self.participations.count_documents({"participantEmail": email})

        await self.users.update_one(
            {"email": email},
            {"$set": {
                "wins": wins,
                "participatedCount": participated,
                "winPercentage": win_percentage(wins, participated)
            }}
        )

    async def recount_contest_participants(self, contest_id: str) -> None:
        """Rebuild participantsCount for one contest"""
        try:
            oid = to_object_id(contest_id)
        except NotFound:
            return

        count = await self.participations.count_documents({"contestId": contest_id})
        await self.contests.update_one({"_id": oid}, {"$set": {"participantsCount": count}})

    async def reconcile(self, grace_seconds: Optional[int] = None) -> Dict:
        """Repair every pending record older than the grace window"""
        if grace_seconds is None:
            grace_seconds = settings.reconcile_grace_seconds
        cutoff = datetime.utcnow() - timedelta(seconds=grace_seconds)
        repaired = {"winners": 0, "participations": 0}
        deferred = 0

        pending_winners = await self.contests.find({
            "winner.statsApplied": False,
            "winner.declaredAt": {"$lte": cutoff}
        }).to_list(length=None)

        for contest in pending_winners:
            email = contest["winner"].get("email")
            if email:
                if await self.user_has_in_flight_records(email, cutoff):
                    deferred += 1
                    continue
                await self.recount_user_statistics(email)
            await self.contests.update_one(
                {"_id": contest["_id"]},
                {"$set": {"winner.statsApplied": True}}
            )
            repaired["winners"] += 1

        pending_participations = await self.participations.find({
            "countersApplied": False,
            "paidAt": {"$lte": cutoff}
        }).to_list(length=None)

        for participation in pending_participations:
            contest_id = participation.get("contestId")
            email = participation.get("participantEmail")
            if (await self.contest_has_in_flight_records(contest_id, cutoff)
                    or await self.user_has_in_flight_records(email, cutoff)):
                deferred += 1
                continue

            await self.recount_contest_participants(contest_id)
            await self.recount_user_statistics(email)
            await self.participations.update_one(
                {"_id": participation["_id"]},
                {"$set": {"countersApplied": True}}
            )
            repaired["participations"] += 1

        if deferred:
            logger.info("[OK] Deferred %d pending records with requests still in flight", deferred)

        if repaired["winners"] or repaired["participations"]:
            logger.warning(
                "[WARN] Reconciled %d winner statistics and %d participation counters",
                repaired["winners"], repaired["participations"]
            )
        else:
            logger.info("[OK] Reconciliation found nothing to repair")

        return repaired
