"""FastAPI dependencies for dependency injection."""

import hmac
from datetime import datetime
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from agents.registry import registry
from core.config import settings
from core.utils.datetime import now as utc_now
from database.engine import get_db

__all__ = [
    "get_db",
    "get_clock",
    "get_question_generator",
    "get_answer_scorer",
    "require_cron_secret",
]


cron_security = HTTPBearer(auto_error=False)


def get_clock() -> datetime:
    """Current time; overridden in tests to pin the clock."""
    return utc_now()


def get_question_generator():
    return registry.get("questions")


def get_answer_scorer():
    return registry.get("scoring")


async def require_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(cron_security),
) -> None:
    """
    Require ``Authorization: Bearer <CRON_SECRET>``.

    Fails closed: when no secret is configured every request is rejected.
    """
    expected = settings.cron_secret
    provided = credentials.credentials if credentials else ""
    if not expected or not hmac.compare_digest(
        provided.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
