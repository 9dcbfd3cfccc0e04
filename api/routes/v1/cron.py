"""
Reconciliation triggers for an external scheduler.

Both endpoints require ``Authorization: Bearer <CRON_SECRET>`` and are safe
to call repeatedly or concurrently.
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_clock, get_db, require_cron_secret
from api.services import reconciliation

router = APIRouter(
    prefix="/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_secret)],
)


@router.get("/interview-status", summary="Run Interview Status Sweep")
async def interview_status(
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await reconciliation.run_status_sweep(session, now)


@router.get("/interview-reminders", summary="Enqueue Interview Reminders")
async def interview_reminders(
    session: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    return await reconciliation.run_reminder_sweep(session, now)
