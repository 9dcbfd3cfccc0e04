"""Outbox delivery: render queued notifications and hand them to SMTP."""

import asyncio
import logging
from typing import Optional

from api.services import outbox
from core.integrations.email import EmailService
from core.notifications import render
from core.utils.datetime import now
from database.models.outbox import OutboxMessage
from workers.celery_app import celery_app
from workers.session import run_with_session

logger = logging.getLogger(__name__)


def make_email_sender(email_service: Optional[EmailService] = None):
    """Build the async ``deliver`` callback used by ``outbox.deliver_pending``."""
    email_service = email_service or EmailService()

    async def deliver(message: OutboxMessage) -> None:
        subject, body = render(message.topic, message.payload)
        # smtplib blocks; keep the event loop free
        await asyncio.to_thread(
            email_service.send_email,
            message.payload["to"],
            subject,
            body,
        )

    return deliver


@celery_app.task(name="workers.tasks.notifications.deliver_outbox")
def deliver_outbox(batch_size: int = 50) -> dict:
    """Deliver due outbox messages.

    Returns:
        Counts of delivered, retrying and failed messages
    """
    stats = run_with_session(
        outbox.deliver_pending, make_email_sender(), now(), batch_size=batch_size
    )
    if any(stats.values()):
        logger.info(f"Outbox delivery: {stats}")
    return stats
