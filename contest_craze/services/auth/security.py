import logging
from jose import JWTError, jwt
from datetime import datetime, timedelta
from typing import Optional

from contest_craze.core.config import settings
from contest_craze.models.auth.token import TokenData

logger = logging.getLogger(__name__)


class SecurityService:
    """Service for issuing and verifying JWT access tokens"""

    @staticmethod
    def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        if not settings.access_token_secret:
            raise ValueError("ACCESS_TOKEN_SECRET is not configured")

        to_encode = data.copy()

        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.access_token_secret, algorithm=settings.algorithm)

    @staticmethod
    def verify_token(token: Optional[str]) -> Optional[TokenData]:
        """Verify and decode JWT token, None when it does not verify"""
        if not token or not settings.access_token_secret:
            return None

        try:
            payload = jwt.decode(token, settings.access_token_secret, algorithms=[settings.algorithm])
        except JWTError as e:
            logger.info("[WARN] JWT verification failed: %s", e)
            return None

        if payload.get("type") != "access":
            return None

        email = payload.get("email") or payload.get("sub")
        if not email:
            return None

        return TokenData(email=email)


security_service = SecurityService()
