from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from contest_craze.database import get_database
from contest_craze.models.user.user import UserCreate, ProfileUpdate, RoleUpdate
from contest_craze.routes.auth.dependencies import get_current_email, require_admin
from contest_craze.services.auth.authorization import AuthorizationPolicy
from contest_craze.services.contest.leaderboard import LeaderboardService
from contest_craze.services.user.user import UserService
from contest_craze.utils.response import success_response

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/leaderboard")
async def get_leaderboard(db: AsyncIOMotorDatabase = Depends(get_database)):
    """
    Top 10 winners.
    Ordered by wins, ties broken by fewer participations. Public.
    """
    leaderboard = await LeaderboardService(db).get_top_winners()
    return success_response(message="Leaderboard retrieved successfully", data=leaderboard)


@router.get("")
async def list_users(
    _admin: str = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """All users (admin only)"""
    users = await UserService(db).list_users()
    return success_response(message="Users retrieved successfully", data=users)


@router.post("")
async def register_user(
    user_data: UserCreate,
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Register a user on first sign-in.
    Re-registering an existing email is not an error: the stored record is
    returned and insertedId is null.
    """
    user, created = await UserService(db).register(user_data)

    if not created:
        return success_response(
            message="User already exists",
            data={"insertedId": None, "user": user}
        )

    return success_response(
        message="User registered successfully",
        data={"insertedId": user["_id"], "user": user},
        status_code=201
    )


@router.get("/role/{email}")
async def get_user_role(
    email: str,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Role of the calling user"""
    AuthorizationPolicy.require_self(current_email, email)

    role = await UserService(db).get_role(email)
    return success_response(message="Role retrieved successfully", data={"role": role})


@router.patch("/role/{email}")
async def set_user_role(
    email: str,
    role_data: RoleUpdate,
    _admin: str = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Change a user's role (admin only)"""
    result = await UserService(db).set_role(email, role_data.role)
    return success_response(message="Role updated successfully", data=result)


@router.get("/{email}")
async def get_user_profile(
    email: str,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """Profile of the calling user"""
    AuthorizationPolicy.require_self(current_email, email)

    user = await UserService(db).get_user_by_email(email)
    return success_response(message="Profile retrieved successfully", data=user)


@router.put("/{email}")
async def update_user_profile(
    email: str,
    profile_data: ProfileUpdate,
    current_email: str = Depends(get_current_email),
    db: AsyncIOMotorDatabase = Depends(get_database)
):
    """
    Update own profile.
    Only name, photo and address can be changed here; role and statistics
    are managed by admins and the winner workflow.
    """
    AuthorizationPolicy.require_self(current_email, email)

    result = await UserService(db).update_profile(email, profile_data)
    return success_response(message="Profile updated successfully", data=result)
