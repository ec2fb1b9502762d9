import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from contest_craze.core.config import settings
from contest_craze.core.exceptions import ContestCrazeError, StoreError
from contest_craze.database import Database
from contest_craze.routes.auth.auth_routes import router as auth_router
from contest_craze.routes.user.user_routes import router as user_router
from contest_craze.routes.contest.contest_routes import router as contest_router
from contest_craze.routes.contest.participation_routes import router as participation_router
from contest_craze.routes.contest.submission_routes import router as submission_router
from contest_craze.routes.admin.admin_routes import router as admin_router
from contest_craze.services.contest.reconciliation import ReconciliationService
from contest_craze.utils.response import error_response, validation_error_response

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for the application"""
    # Startup
    await Database.connect_db()

    if settings.reconcile_on_startup:
        try:
            await ReconciliationService(Database.get_db()).reconcile(
                grace_seconds=settings.startup_reconcile_grace_seconds
            )
        except PyMongoError as e:
            logger.error("[ERROR] Startup reconciliation failed: %s", e)

    yield
    # Shutdown
    await Database.close_db()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Contest management API: contests, participation, submissions and winners",
    lifespan=lifespan
)

# Leaderboard and listings are public
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else [settings.frontend_url],
    allow_credentials=not settings.debug,  # Can't use credentials with wildcard origin
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)


@app.exception_handler(ContestCrazeError)
async def contest_craze_error_handler(request: Request, exc: ContestCrazeError):
    return error_response(message=exc.message, status_code=exc.status_code)


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.error("[ERROR] Store failure on %s %s: %s", request.method, request.url.path, exc)
    return error_response(message=StoreError.default_message, status_code=StoreError.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = {
        ".".join(str(part) for part in error["loc"]): error["msg"]
        for error in exc.errors()
    }
    return validation_error_response(errors=errors)


app.include_router(auth_router)
app.include_router(user_router)
app.include_router(contest_router)
app.include_router(participation_router)
app.include_router(submission_router)
app.include_router(admin_router)


@app.get("/")
async def read_root():
    """Root endpoint"""
    return "Backend is running"


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
