from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from typing import List, Dict

from contest_craze.core.config import settings

LEADERBOARD_SIZE = 10


class LeaderboardService:
    """Service for the winners leaderboard - computed from user statistics on every call"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.users = db[settings.users_collection]

    async def get_top_winners(self, limit: int = LEADERBOARD_SIZE) -> List[Dict]:
        """
        Users with at least one win, most wins first.
        Ties go to the user who needed fewer participations.
        """
        cursor = self.users.find(
            {"wins": {"$gt": 0}},
            {"_id": 1, "name": 1, "email": 1, "photo": 1, "wins": 1},
            sort=[("wins", DESCENDING), ("participatedCount", ASCENDING)],
            limit=limit
        )
        return await cursor.to_list(length=limit)
