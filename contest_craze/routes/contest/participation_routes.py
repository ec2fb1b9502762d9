from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from contest_craze.database import get_database
from contest_craze.models.contest.participation import ParticipationCreate
from contest_craze.routes.auth.dependencies import get_current_email
from contest_craze.services.auth.authorization import AuthorizationPolicy
from contest_craze.services.contest.participation import ParticipationService
from contest_craze.utils.response import success_response

router = APIRouter(prefix="/participated", tags=["Participation"])


@router.get("/check/{contest_id}")
async def check_registration(
    contest_id: str,
    email: str = Query(...),
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Whether the calling user has entered the contest"""
    AuthorizationPolicy.require_self(current_email, email)

    is_registered = await ParticipationService(db).is_registered(contest_id, email)
    return success_response(
        message="Registration status retrieved",
        data={"isRegistered": is_registered}
    )


@router.post("")
async def record_participation(
    participation_data: ParticipationCreate,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Record an entry after the payment gateway confirmed the payment.

    - One entry per user and contest
    - Contest must be Confirmed and not past its deadline
    - Increments the contest's participantsCount and the user's participatedCount
    """
    AuthorizationPolicy.require_self(current_email, participation_data.participant_email)

    result = await ParticipationService(db).record_participation(participation_data)
    return success_response(message="Participation recorded", data=result, status_code=201)


@router.get("/{email}")
async def get_participated_contests(
    email: str,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Contests the calling user entered, with contest name, deadline and image"""
    AuthorizationPolicy.require_self(current_email, email)

    participations = await ParticipationService(db).get_participations_by_user(email)
    return success_response(message="Participations retrieved successfully", data=participations)
