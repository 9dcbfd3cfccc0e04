"""
Tests for notification rendering and outbox email delivery.
"""

import pytest

from core.notifications import RENDERERS, render
from database.models.outbox import OutboxMessage, OutboxTopic
from workers.tasks.notifications import make_email_sender


@pytest.fixture
def payload():
    return {
        "interview_id": "iv-1",
        "to": "ada@example.com",
        "candidate_name": "Ada Lovelace",
        "job_title": "Backend Engineer",
        "company_name": "Acme",
        "interview_link": "https://interviews.example.com/interview/abc",
        "scheduled_at": "2026-03-03T09:00:00+00:00",
        "timezone": None,
        "duration_minutes": 30,
        "grace_minutes": 5,
    }


class TestRender:
    """Test template rendering per topic."""

    def test_every_topic_has_a_renderer(self):
        assert set(RENDERERS) == {topic.value for topic in OutboxTopic}

    def test_invite(self, payload):
        subject, body = render(OutboxTopic.INTERVIEW_INVITE, {**payload, "custom_message": "Welcome!"})

        assert subject == "Your AI Interview for Backend Engineer is Scheduled"
        assert "Hi Ada Lovelace," in body
        assert "Welcome!" in body
        assert "Tuesday, March 03, 2026 at 09:00 (UTC)" in body
        assert "https://interviews.example.com/interview/abc" in body
        assert "5 minutes before" in body

    def test_invite_without_time(self, payload):
        _, body = render("interview.invite", {**payload, "scheduled_at": None})

        assert "When: Available now" in body

    def test_candidate_timezone(self, payload):
        _, body = render("interview.reminder_1h", {**payload, "timezone": "Europe/Berlin"})

        assert "10:00 (Europe/Berlin)" in body

    def test_unknown_timezone_falls_back_to_utc(self, payload):
        _, body = render("interview.reminder_24h", {**payload, "timezone": "Mars/Olympus"})

        assert "09:00 (UTC)" in body

    def test_reminders(self, payload):
        day_subject, day_body = render("interview.reminder_24h", payload)
        hour_subject, _ = render("interview.reminder_1h", payload)

        assert day_subject == "Reminder: Your AI Interview for Backend Engineer is Tomorrow"
        assert "is tomorrow" in day_body
        assert hour_subject == "Starting Soon: Your AI Interview for Backend Engineer"

    def test_rescheduled(self, payload):
        subject, body = render(
            "interview.rescheduled", {**payload, "old_scheduled_at": "2026-03-02T15:00:00+00:00"}
        )

        assert subject == "Your Interview for Backend Engineer Has Been Rescheduled"
        assert "Previously: Monday, March 02, 2026 at 15:00 (UTC)" in body

    def test_cancelled_with_reason(self, payload):
        _, body = render("interview.cancelled", {**payload, "reason": "Position filled"})

        assert "Reason: Position filled" in body

    def test_completed(self, payload):
        subject, _ = render("interview.completed", payload)

        assert subject == "Thank You for Completing Your Interview - Backend Engineer"

    def test_unknown_topic(self, payload):
        with pytest.raises(KeyError):
            render("interview.unknown", payload)


class FakeEmailService:
    def __init__(self, error=None):
        self.sent = []
        self.error = error

    def send_email(self, to_email, subject, body):
        if self.error:
            raise self.error
        self.sent.append((to_email, subject, body))


class TestEmailSender:
    """Test the outbox delivery callback."""

    async def test_sends_rendered_email(self, payload):
        service = FakeEmailService()
        deliver = make_email_sender(service)

        await deliver(OutboxMessage(topic=OutboxTopic.INTERVIEW_COMPLETED, dedupe_key="k", payload=payload))

        assert len(service.sent) == 1
        to_email, subject, _ = service.sent[0]
        assert to_email == "ada@example.com"
        assert subject.startswith("Thank You")

    async def test_errors_propagate_for_retry(self, payload):
        deliver = make_email_sender(FakeEmailService(error=ConnectionError("refused")))

        with pytest.raises(ConnectionError):
            await deliver(OutboxMessage(topic=OutboxTopic.INTERVIEW_INVITE, dedupe_key="k", payload=payload))
