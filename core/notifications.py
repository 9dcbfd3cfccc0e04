"""
Candidate-facing email templates for interview notifications.

Each outbox topic renders to a (subject, body) pair from the message payload.
Payload keys: ``to``, ``candidate_name``, ``job_title``, ``company_name``,
``interview_link``, ``scheduled_at`` (ISO-8601), ``timezone``,
``duration_minutes``, ``custom_message``, ``old_scheduled_at``, ``reason``.
"""

from datetime import datetime
from typing import Any, Callable, Optional

from core.utils.datetime import format_for_humans

EmailContent = tuple[str, str]

_TIPS = """Tips for your interview:
- Find a quiet place with stable internet
- Take your time to think through each question
- Provide specific examples when possible
- Your answers are automatically saved"""


def _when(payload: dict[str, Any], key: str = "scheduled_at") -> Optional[str]:
    value = payload.get(key)
    if not value:
        return None
    return format_for_humans(datetime.fromisoformat(value), payload.get("timezone"))


def _greeting(payload: dict[str, Any]) -> str:
    return f"Hi {payload.get('candidate_name') or 'there'},"


def render_invite(payload: dict[str, Any]) -> EmailContent:
    job_title = payload["job_title"]
    when = _when(payload) or "Available now"
    custom = payload.get("custom_message")
    grace = payload.get("grace_minutes", 5)
    lines = [
        _greeting(payload),
        "",
        f"Your AI interview for the {job_title} position has been scheduled.",
        "",
    ]
    if custom:
        lines += ["Message from the recruiter:", custom, ""]
    lines += [
        "Details:",
        f"- Position: {job_title}",
        f"- When: {when}",
        f"- Duration: ~{payload.get('duration_minutes', 30)} minutes",
        "",
        f"Start your interview here: {payload['interview_link']}",
        "",
        f"You can access the interview {grace} minutes before the scheduled time.",
        "",
        _TIPS,
        "",
        "Good luck!",
    ]
    return f"Your AI Interview for {job_title} is Scheduled", "\n".join(lines)


def _render_reminder(payload: dict[str, Any], hours: int) -> EmailContent:
    job_title = payload["job_title"]
    if hours == 24:
        subject = f"Reminder: Your AI Interview for {job_title} is Tomorrow"
        label = "tomorrow"
    else:
        subject = f"Starting Soon: Your AI Interview for {job_title}"
        label = "in 1 hour"
    body = "\n".join(
        [
            _greeting(payload),
            "",
            f"Your AI interview for {job_title} is {label}.",
            "",
            "Details:",
            f"- Position: {job_title}",
            f"- When: {_when(payload)}",
            f"- Duration: ~{payload.get('duration_minutes', 30)} minutes",
            "",
            f"Go to your interview: {payload['interview_link']}",
        ]
    )
    return subject, body


def render_reminder_24h(payload: dict[str, Any]) -> EmailContent:
    return _render_reminder(payload, 24)


def render_reminder_1h(payload: dict[str, Any]) -> EmailContent:
    return _render_reminder(payload, 1)


def render_rescheduled(payload: dict[str, Any]) -> EmailContent:
    job_title = payload["job_title"]
    lines = [
        _greeting(payload),
        "",
        f"Your AI interview for {job_title} has been rescheduled.",
        "",
    ]
    previous = _when(payload, "old_scheduled_at")
    if previous:
        lines.append(f"Previously: {previous}")
    lines += [
        f"New Date & Time: {_when(payload)}",
        f"Duration: ~{payload.get('duration_minutes', 30)} minutes",
        "",
        f"View your interview: {payload['interview_link']}",
        "",
        "We apologize for any inconvenience.",
    ]
    return f"Your Interview for {job_title} Has Been Rescheduled", "\n".join(lines)


def render_cancelled(payload: dict[str, Any]) -> EmailContent:
    job_title = payload["job_title"]
    lines = [
        _greeting(payload),
        "",
        f"We regret to inform you that your AI interview for {job_title} has been cancelled.",
        "",
    ]
    if payload.get("reason"):
        lines += [f"Reason: {payload['reason']}", ""]
    lines += [
        "If you have any questions, please reply to this email.",
        "",
        "We appreciate your interest and wish you the best.",
    ]
    return f"Your Interview for {job_title} Has Been Cancelled", "\n".join(lines)


def render_completed(payload: dict[str, Any]) -> EmailContent:
    job_title = payload["job_title"]
    body = "\n".join(
        [
            _greeting(payload),
            "",
            f"Thank you for completing your AI interview for the {job_title} position.",
            "",
            "What happens next?",
            "- The hiring team will review your interview",
            "- We'll be in touch within the next few days",
            "",
            "Thank you for your interest in joining our team!",
        ]
    )
    return f"Thank You for Completing Your Interview - {job_title}", body


RENDERERS: dict[str, Callable[[dict[str, Any]], EmailContent]] = {
    "interview.invite": render_invite,
    "interview.reminder_24h": render_reminder_24h,
    "interview.reminder_1h": render_reminder_1h,
    "interview.rescheduled": render_rescheduled,
    "interview.cancelled": render_cancelled,
    "interview.completed": render_completed,
}


def render(topic: str, payload: dict[str, Any]) -> EmailContent:
    """
    Render the email for an outbox topic.

    Raises:
        KeyError: unknown topic or a required payload key is missing
    """
    return RENDERERS[getattr(topic, "value", topic)](payload)
