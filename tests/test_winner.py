import asyncio
import pytest
from datetime import datetime, timedelta
from pymongo.errors import PyMongoError

from contest_craze.core.config import settings
from contest_craze.core.exceptions import NotFound, Forbidden, InvalidState, StoreError
from contest_craze.services.contest.reconciliation import ReconciliationService
from contest_craze.services.contest.winner import WinnerService

CREATOR = "creator@example.com"
ALICE = "alice@example.com"
BOB = "bob@example.com"


async def get_contest(db, contest_id):
    return await db[settings.contests_collection].find_one({"_id": contest_id})


async def get_user(db, email):
    return await db[settings.users_collection].find_one({"email": email})


async def test_declare_winner_closes_contest_and_updates_statistics(db, create_user, create_contest):
    await create_user(CREATOR, role="Contest Creator")
    await create_user(ALICE, photo="alice.png", wins=1, participatedCount=4)
    contest = await create_contest(CREATOR, prizeMoney=750.0)

    result = await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, ALICE)

    assert result["matchedCount"] == 1
    assert result["winner"]["email"] == ALICE

    stored = await get_contest(db, contest["_id"])
    assert stored["status"] == "Closed"
    assert stored["winner"]["email"] == ALICE
    assert stored["winner"]["name"] == "alice"
    assert stored["winner"]["photo"] == "alice.png"
    assert stored["winner"]["prizeMoney"] == 750.0
    assert stored["winner"]["statsApplied"] is True

    user = await get_user(db, ALICE)
    assert user["wins"] == 2
    assert user["winPercentage"] == 50.0


async def test_second_declaration_is_rejected(db, create_user, create_contest):
    await create_user(ALICE, participatedCount=1)
    await create_user(BOB, participatedCount=1)
    contest = await create_contest(CREATOR)
    service = WinnerService(db)

    await service.declare_winner(str(contest["_id"]), CREATOR, ALICE)

    with pytest.raises(InvalidState):
        await service.declare_winner(str(contest["_id"]), CREATOR, BOB)

    stored = await get_contest(db, contest["_id"])
    assert stored["winner"]["email"] == ALICE
    assert (await get_user(db, BOB))["wins"] == 0
    assert (await get_user(db, ALICE))["wins"] == 1


async def test_declaration_before_deadline_is_rejected(db, create_user, create_contest):
    await create_user(ALICE)
    contest = await create_contest(CREATOR, deadline=datetime.utcnow() + timedelta(hours=2))

    with pytest.raises(InvalidState):
        await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, ALICE)

    stored = await get_contest(db, contest["_id"])
    assert stored["status"] == "Confirmed"
    assert "winner" not in stored


@pytest.mark.parametrize("status", ["Pending", "Rejected"])
async def test_unapproved_contest_cannot_get_a_winner(db, create_user, create_contest, status):
    await create_user(ALICE, participatedCount=1)
    contest = await create_contest(CREATOR, status=status)

    with pytest.raises(InvalidState):
        await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, ALICE)

    stored = await get_contest(db, contest["_id"])
    assert stored["status"] == status
    assert "winner" not in stored
    assert (await get_user(db, ALICE))["wins"] == 0


async def test_status_change_after_eligibility_read_blocks_declaration(db, create_user, create_contest, monkeypatch):
    await create_user(ALICE, participatedCount=1)
    contest = await create_contest(CREATOR, status="Rejected")
    monkeypatch.setattr(WinnerService, "is_eligible", staticmethod(lambda contest, now: True))

    with pytest.raises(InvalidState):
        await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, ALICE)

    stored = await get_contest(db, contest["_id"])
    assert stored["status"] == "Rejected"
    assert "winner" not in stored


async def test_legacy_string_deadline_is_honoured(db, create_user, create_contest):
    await create_user(ALICE, participatedCount=1)
    past = (datetime.utcnow() - timedelta(days=3)).isoformat() + "Z"
    contest = await create_contest(CREATOR, deadline=past)

    await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, ALICE)

    assert (await get_contest(db, contest["_id"]))["status"] == "Closed"


async def test_only_owner_can_declare(db, create_user, create_contest):
    await create_user(ALICE)
    contest = await create_contest(CREATOR)

    with pytest.raises(Forbidden):
        await WinnerService(db).declare_winner(str(contest["_id"]), "other@example.com", ALICE)

    assert "winner" not in await get_contest(db, contest["_id"])


@pytest.mark.parametrize("contest_id", ["64b7f0c2a1b2c3d4e5f60718", "not-an-object-id"])
async def test_unknown_contest_is_not_found(db, create_user, contest_id):
    await create_user(ALICE)

    with pytest.raises(NotFound):
        await WinnerService(db).declare_winner(contest_id, CREATOR, ALICE)


async def test_unknown_winner_is_not_found_and_nothing_is_written(db, create_contest):
    contest = await create_contest(CREATOR)

    with pytest.raises(NotFound):
        await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, "ghost@example.com")

    stored = await get_contest(db, contest["_id"])
    assert stored["status"] == "Confirmed"
    assert "winner" not in stored


async def test_winner_without_participations_gets_zero_percentage(db, create_user, create_contest):
    await create_user(ALICE, participatedCount=0)
    contest = await create_contest(CREATOR)

    await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, ALICE)

    user = await get_user(db, ALICE)
    assert user["wins"] == 1
    assert user["winPercentage"] == 0.0


async def test_submission_must_belong_to_the_winner(db, create_user, create_contest):
    await create_user(ALICE, participatedCount=1)
    await create_user(BOB, participatedCount=1)
    contest = await create_contest(CREATOR)
    submission = await db[settings.submissions_collection].insert_one({
        "contestId": str(contest["_id"]),
        "participantEmail": BOB,
        "participantName": "bob"
    })
    service = WinnerService(db)

    with pytest.raises(NotFound):
        await service.declare_winner(str(contest["_id"]), CREATOR, ALICE, str(submission.inserted_id))

    result = await service.declare_winner(str(contest["_id"]), CREATOR, BOB, str(submission.inserted_id))
    assert result["winner"]["submissionId"] == str(submission.inserted_id)


async def test_concurrent_declarations_have_exactly_one_winner(db, create_user, create_contest):
    await create_user(ALICE, participatedCount=1)
    await create_user(BOB, participatedCount=1)
    contest = await create_contest(CREATOR)
    service = WinnerService(db)

    results = await asyncio.gather(
        service.declare_winner(str(contest["_id"]), CREATOR, ALICE),
        service.declare_winner(str(contest["_id"]), CREATOR, BOB),
        return_exceptions=True
    )

    successes = [r for r in results if isinstance(r, dict)]
    failures = [r for r in results if isinstance(r, InvalidState)]
    assert len(successes) == 1
    assert len(failures) == 1

    stored = await get_contest(db, contest["_id"])
    winner_email = successes[0]["winner"]["email"]
    assert stored["winner"]["email"] == winner_email
    alice, bob = await get_user(db, ALICE), await get_user(db, BOB)
    assert alice["wins"] + bob["wins"] == 1


async def test_stale_eligibility_read_loses_to_conditional_update(db, create_user, create_contest, monkeypatch):
    """A declaration that passed the eligibility read after another one wrote must still fail"""
    await create_user(ALICE, participatedCount=1)
    await create_user(BOB, participatedCount=1)
    contest = await create_contest(CREATOR)
    service = WinnerService(db)
    await service.declare_winner(str(contest["_id"]), CREATOR, ALICE)

    monkeypatch.setattr(WinnerService, "is_eligible", staticmethod(lambda contest, now: True))

    with pytest.raises(InvalidState, match="already been declared"):
        await service.declare_winner(str(contest["_id"]), CREATOR, BOB)

    assert (await get_contest(db, contest["_id"]))["winner"]["email"] == ALICE
    assert (await get_user(db, BOB))["wins"] == 0


async def test_failed_statistics_write_is_reported_and_reconciled(db, create_user, create_contest, monkeypatch):
    await create_user(ALICE, participatedCount=2)
    contest = await create_contest(CREATOR)
    await db[settings.participations_collection].insert_many([
        {"contestId": str(contest["_id"]), "participantEmail": ALICE, "countersApplied": True},
        {"contestId": "64b7f0c2a1b2c3d4e5f60718", "participantEmail": ALICE, "countersApplied": True},
    ])

    async def failing_statistics(self, contest_oid, winner_email):
        raise PyMongoError("connection reset")

    monkeypatch.setattr(WinnerService, "apply_winner_statistics", failing_statistics)

    with pytest.raises(StoreError):
        await WinnerService(db).declare_winner(str(contest["_id"]), CREATOR, ALICE)

    stored = await get_contest(db, contest["_id"])
    assert stored["status"] == "Closed"
    assert stored["winner"]["statsApplied"] is False
    assert (await get_user(db, ALICE))["wins"] == 0

    monkeypatch.undo()
    reconciliation = ReconciliationService(db)

    repaired = await reconciliation.reconcile(grace_seconds=0)
    assert repaired["winners"] == 1

    user = await get_user(db, ALICE)
    assert user["wins"] == 1
    assert user["participatedCount"] == 2
    assert user["winPercentage"] == 50.0
    assert (await get_contest(db, contest["_id"]))["winner"]["statsApplied"] is True

    again = await reconciliation.reconcile(grace_seconds=0)
    assert again == {"winners": 0, "participations": 0}
    assert (await get_user(db, ALICE))["wins"] == 1
