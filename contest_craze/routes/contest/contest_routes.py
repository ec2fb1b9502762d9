from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from contest_craze.database import get_database
from contest_craze.models.contest.contest import (
    ContestCreate,
    ContestUpdate,
    ContestStatusUpdate,
    DeclareWinnerRequest
)
from contest_craze.routes.auth.dependencies import get_current_email, require_admin, require_creator
from contest_craze.services.auth.authorization import AuthorizationPolicy
from contest_craze.services.contest.contest import ContestService
from contest_craze.services.contest.winner import WinnerService
from contest_craze.utils.params import parse_positive_int
from contest_craze.utils.response import success_response

router = APIRouter(prefix="/contests", tags=["Contests"])


@router.post("")
async def create_contest(
    contest_data: ContestCreate,
    creator_email: str = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Create a new contest (contest creators only).

    - Contest starts in Pending status whatever the client sends
    - participantsCount starts at 0
    - Admin must confirm it before it is listed
    """
    contest = await ContestService(db).create_contest(contest_data, creator_email)
    return success_response(
        message="Contest created successfully",
        data={"insertedId": contest["_id"], "contest": contest},
        status_code=201
    )


@router.get("/creator/{email}")
async def get_creator_contests(
    email: str,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests owned by the calling creator"""
    AuthorizationPolicy.require_self(current_email, email)

    contests = await ContestService(db).get_contests_by_creator(email)
    return success_response(message="Contests retrieved successfully", data=contests)


@router.get("/approved")
async def get_approved_contests(
    type: Optional[str] = Query(None, description="Contest type, 'All' for no filter"),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Confirmed contests, most popular first"""
    contests = await ContestService(db).get_approved_contests(type)
    return success_response(message="Contests retrieved successfully", data=contests)


@router.get("/popular")
async def get_popular_contests(db: AsyncIOMotorDatabase = Depends(get_database)):
    """Top 6 confirmed contests by participants"""
    contests = await ContestService(db).get_popular_contests()
    return success_response(message="Popular contests retrieved successfully", data=contests)


@router.get("/all")
async def get_all_contests(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    _admin: str = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Every contest, paginated (admin only).
    page/limit default to 1/10 when missing or not a positive number.
    """
    contests, total = await ContestService(db).get_all_contests(
        page=parse_positive_int(page, 1),
        limit=parse_positive_int(limit, 10)
    )
    return success_response(
        message="Contests retrieved successfully",
        data={"contests": contests, "totalCount": total}
    )


@router.get("/winner/{email}")
async def get_won_contests(
    email: str,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests the calling user has won"""
    AuthorizationPolicy.require_self(current_email, email)

    contests = await ContestService(db).get_contests_won_by(email)
    return success_response(message="Winning contests retrieved successfully", data=contests)


@router.patch("/status/{contest_id}")
async def set_contest_status(
    contest_id: str,
    status_data: ContestStatusUpdate,
    _admin: str = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Confirm or reject a contest (admin only)"""
    result = await ContestService(db).set_status(contest_id, status_data.status)
    return success_response(message=f"Contest {status_data.status.value.lower()}", data=result)


@router.put("/declare-winner/{contest_id}")
async def declare_winner(
    contest_id: str,
    winner_data: DeclareWinnerRequest,
    creator_email: str = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Declare the winner of an ended contest (owning creator only).

    - Deadline must have passed
    - A contest gets exactly one winner; later declarations are rejected
    - Closes the contest and updates the winner's wins / winPercentage
    """
    result = await WinnerService(db).declare_winner(
        contest_id=contest_id,
        caller_email=creator_email,
        winner_email=winner_data.winner_email,
        submission_id=winner_data.submission_id
    )
    return success_response(message="Winner declared successfully", data=result)


@router.get("/{contest_id}")
async def get_contest(
    contest_id: str,
    _current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Get one contest"""
    contest = await ContestService(db).get_contest(contest_id)
    return success_response(message="Contest retrieved successfully", data=contest)


@router.put("/{contest_id}")
async def update_contest(
    contest_id: str,
    update_data: ContestUpdate,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Update contest (owner only, only while Pending).
    Status, creator, winner and participantsCount cannot be changed here.
    """
    result = await ContestService(db).update_contest(contest_id, update_data, current_email)
    return success_response(message="Contest updated successfully", data=result)


@router.delete("/{contest_id}")
async def delete_contest(
    contest_id: str,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Delete contest (owner only, only while Pending)"""
    result = await ContestService(db).delete_contest(contest_id, current_email)
    return success_response(message="Contest deleted successfully", data=result)
