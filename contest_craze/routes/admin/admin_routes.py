from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from contest_craze.database import get_database
from contest_craze.routes.auth.dependencies import require_admin
from contest_craze.services.contest.reconciliation import ReconciliationService
from contest_craze.utils.response import success_response

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/reconcile")
async def reconcile(
    _admin: str = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Finish winner statistics and participation counters whose follow-up
    write did not complete. Safe to run repeatedly.
    """
    repaired = await ReconciliationService(db).reconcile()
    return success_response(message="Reconciliation complete", data=repaired)
