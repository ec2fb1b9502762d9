from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Optional

from contest_craze.database import get_database
from contest_craze.models.contest.submission import SubmissionCreate
from contest_craze.routes.auth.dependencies import get_current_email, require_creator
from contest_craze.services.auth.authorization import AuthorizationPolicy
from contest_craze.services.contest.submission import SubmissionService
from contest_craze.utils.response import success_response

router = APIRouter(prefix="/submissions", tags=["Submissions"])


@router.post("")
async def create_submission(
    submission_data: SubmissionCreate,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Submit work for a contest.
    Only users who entered the contest can submit.
    """
    AuthorizationPolicy.require_self(current_email, submission_data.participant_email)

    result = await SubmissionService(db).create_submission(submission_data)
    return success_response(message="Submission received", data=result, status_code=201)


@router.get("/creator/{email}")
async def get_creator_submissions(
    email: str,
    contestId: Optional[str] = Query(None),
    creator_email: str = Depends(require_creator),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Submissions to the calling creator's contests, optionally for one contest"""
    AuthorizationPolicy.require_self(creator_email, email)

    submissions = await SubmissionService(db).get_submissions_for_creator(email, contestId)
    return success_response(message="Submissions retrieved successfully", data=submissions)
