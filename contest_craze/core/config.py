import os
from typing import ClassVar, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings:
    """Process-wide settings read from the environment (and .env)"""
    _instance: ClassVar[Optional["Settings"]] = None

    def __new__(cls) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self.app_name = os.getenv("APP_NAME", "ContestCraze")
        self.app_version = os.getenv("APP_VERSION", "1.0.0")
        self.debug = os.getenv("DEBUG", "True").lower() == "true"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.frontend_url = os.getenv("FRONTEND_URL", "http://localhost:5173")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Record store
        self.db_uri = os.getenv("DB_URI", "mongodb://localhost:27017")
        self.database_name = os.getenv("DATABASE_NAME", "contest_craze_db")
        self.users_collection = os.getenv("USERS_COLLECTION", "users_collections")
        self.contests_collection = os.getenv("CONTESTS_COLLECTION", "contests_collections")
        self.participations_collection = os.getenv("PARTICIPATIONS_COLLECTION", "participated_collections")
        self.submissions_collection = os.getenv("SUBMISSIONS_COLLECTION", "submissions_collections")
        self.db_max_pool_size = int(os.getenv("DB_MAX_POOL_SIZE", "10"))
        self.db_server_selection_timeout_ms = int(os.getenv("DB_SERVER_SELECTION_TIMEOUT_MS", "5000"))

        # Tokens
        self.access_token_secret = os.getenv("ACCESS_TOKEN_SECRET")
        self.algorithm = os.getenv("ALGORITHM", "HS256")
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

        # Reconciliation leaves records younger than the grace window to their request
        self.reconcile_on_startup = os.getenv("RECONCILE_ON_STARTUP", "True").lower() == "true"
        self.reconcile_grace_seconds = int(os.getenv("RECONCILE_GRACE_SECONDS", "60"))
        self.startup_reconcile_grace_seconds = int(os.getenv("STARTUP_RECONCILE_GRACE_SECONDS", "5"))

        self._initialized = True

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
