"""Interview reconciliation tasks driven by Celery beat."""

import logging

from celery import Task

from agents.registry import registry
from api.services import reconciliation, submissions
from core.exceptions import InterviewError
from core.utils.datetime import now
from workers.celery_app import celery_app
from workers.session import run_with_session

logger = logging.getLogger(__name__)


@celery_app.task(name="workers.tasks.interviews.run_status_sweep")
def run_status_sweep() -> dict:
    """Advance interview statuses against the clock.

    Returns:
        Per-pass counts, ``total_updated`` and ``errors``
    """
    summary = run_with_session(reconciliation.run_status_sweep, now())
    if summary["errors"]:
        logger.error(f"Status sweep finished with errors: {summary['errors']}")
    else:
        logger.info(f"Status sweep moved {summary['total_updated']} interview(s)")
    return summary


@celery_app.task(name="workers.tasks.interviews.run_reminder_sweep")
def run_reminder_sweep() -> dict:
    """Enqueue 24-hour and 1-hour reminders for upcoming interviews."""
    return run_with_session(reconciliation.run_reminder_sweep, now())


@celery_app.task(name="workers.tasks.interviews.reevaluate_interview", bind=True)
def reevaluate_interview(self: Task, interview_id: str) -> dict:
    """Re-score defaulted answers of a completed interview.

    Args:
        interview_id: Interview to re-evaluate
    """

    async def _reevaluate(session, interview_id):
        return await submissions.reevaluate_defaulted(
            session, interview_id, scorer=registry.get("scoring"), now=now()
        )

    try:
        return run_with_session(_reevaluate, interview_id)
    except InterviewError as e:
        logger.warning(f"Re-evaluation of interview {interview_id} rejected: {e.code}")
        return {"interview_id": interview_id, "error": e.to_dict()}
