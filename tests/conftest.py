import os

os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-secret")
os.environ["RECONCILE_ON_STARTUP"] = "False"

import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient

from contest_craze.core.config import settings
from contest_craze.database import Database
from contest_craze.main import app
from contest_craze.models.user.user import UserInDB
from contest_craze.services.auth.security import security_service


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory store behind the real connection barrier"""
    Database.client = None
    Database._lock = None
    await Database.connect_db(client=AsyncMongoMockClient())
    yield Database.get_db()
    Database.client = None
    Database._lock = None


@pytest_asyncio.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def auth_headers():
    def _headers(email: str) -> dict:
        token = security_service.create_access_token(data={"sub": email, "email": email})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def create_user(db):
    async def _create(email: str, role: str = "Normal User", **fields) -> dict:
        user = UserInDB(email=email, name=fields.pop("name", email.split("@")[0]), role=role).model_dump()
        user.update(fields)
        await db[settings.users_collection].insert_one(user)
        return user
    return _create


@pytest.fixture
def create_contest(db):
    async def _create(
        creator_email: str,
        status: str = "Confirmed",
        deadline: datetime = None,
        **fields
    ) -> dict:
        contest = {
            "name": "Logo Design Sprint",
            "image": "https://img.example.com/logo.png",
            "description": "Design a logo",
            "price": 10.0,
            "prizeMoney": 500.0,
            "taskInstruction": "Upload a PNG",
            "type": "Image Design",
            "deadline": deadline or (datetime.utcnow() - timedelta(days=1)),
            "creatorEmail": creator_email,
            "status": status,
            "participantsCount": 0,
            "createdAt": datetime.utcnow(),
        }
        contest.update(fields)
        result = await db[settings.contests_collection].insert_one(contest)
        contest["_id"] = result.inserted_id
        return contest
    return _create


@pytest.fixture
def create_participation(db):
    async def _create(contest_id: str, email: str, **fields) -> dict:
        participation = {
            "contestId": str(contest_id),
            "participantEmail": email,
            "paidAt": datetime.utcnow(),
            "countersApplied": True,
        }
        participation.update(fields)
        result = await db[settings.participations_collection].insert_one(participation)
        participation["_id"] = result.inserted_id
        return participation
    return _create
