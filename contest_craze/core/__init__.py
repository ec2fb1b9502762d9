"""
Core module for application infrastructure.
"""
from contest_craze.core.config import Settings, settings
from contest_craze.core.exceptions import (
    ContestCrazeError,
    Unauthorized,
    Forbidden,
    NotFound,
    InvalidState,
    NotRegistered,
    StoreError
)

__all__ = [
    "Settings",
    "settings",
    "ContestCrazeError",
    "Unauthorized",
    "Forbidden",
    "NotFound",
    "InvalidState",
    "NotRegistered",
    "StoreError"
]
