"""
Tests for the staff interview operations: read, reschedule, cancel, review.
"""

from datetime import timedelta

import pytest

from api.services.interviews import (
    cancel_interview,
    clear_review,
    get_interview,
    list_interviews,
    mark_reviewed,
    reschedule_interview,
)
from core.exceptions import InterviewNotFound, InvalidScheduleTime, InvalidStatus
from core.lifecycle import ActivityType, InterviewStatus
from tests.factories import (
    T0,
    activities_for,
    create_candidate,
    create_interview,
    outbox_messages,
    reload_interview,
)


class TestReadInterviews:
    """Test listing and detail reads."""

    async def test_list_with_filters(self, session, candidate, job):
        other = await create_candidate(session, email="grace@example.com", full_name="Grace Hopper")
        await create_interview(session, candidate, job)
        await create_interview(session, other, job, status=InterviewStatus.COMPLETED)

        everything = await list_interviews(session)
        completed = await list_interviews(session, status=InterviewStatus.COMPLETED)
        for_candidate = await list_interviews(session, candidate_id=candidate.id)

        assert everything["total"] == 2
        assert completed["total"] == 1
        assert completed["interviews"][0]["candidate_id"] == other.id
        assert [i["candidate_id"] for i in for_candidate["interviews"]] == [candidate.id]

    async def test_pagination(self, session, candidate, job):
        for _ in range(3):
            await create_interview(session, candidate, job, status=InterviewStatus.MISSED)

        page = await list_interviews(session, limit=2, offset=2)

        assert page["total"] == 3
        assert len(page["interviews"]) == 1
        assert (page["limit"], page["offset"]) == (2, 2)

    async def test_detail_includes_questions_and_rubric(self, session, candidate, job):
        interview = await create_interview(session, candidate, job)

        detail = await get_interview(session, interview.id)

        assert detail["candidate"]["email"] == "ada@example.com"
        assert detail["job"]["title"] == "Backend Engineer"
        assert len(detail["questions"]) == 8
        assert detail["questions"][0]["scoring_rubric"][0]["aspect"] == "depth"

    async def test_detail_missing(self, session):
        with pytest.raises(InterviewNotFound):
            await get_interview(session, "missing")


class TestReschedule:
    """Test reschedule_interview."""

    async def test_reschedule(self, session, session_factory, candidate, job):
        interview = await create_interview(
            session, candidate, job, scheduled_at=T0 + timedelta(hours=2), reminder_sent_at=T0
        )
        new_time = T0 + timedelta(days=3)

        result = await reschedule_interview(session, interview.id, new_time, now=T0, reason="conflict")

        assert result["changed"] is True
        assert result["scheduled_at"] == new_time.isoformat()
        assert result["expires_at"] == (new_time + timedelta(hours=24)).isoformat()

        stored = await reload_interview(session_factory, interview.id)
        assert stored.status == InterviewStatus.SCHEDULED
        assert stored.reminder_sent_at is None

        activities = await activities_for(session_factory, candidate.id)
        assert [a.activity_type for a in activities] == [ActivityType.INTERVIEW_RESCHEDULED]
        assert activities[0].new_value == new_time.isoformat()
        assert activities[0].activity_metadata["reason"] == "conflict"

        messages = await outbox_messages(session_factory)
        assert [m.dedupe_key for m in messages] == [
            f"interview.rescheduled:{interview.id}:{new_time.isoformat()}"
        ]
        assert messages[0].payload["old_scheduled_at"] == (T0 + timedelta(hours=2)).isoformat()

    async def test_ready_goes_back_to_scheduled(self, session, session_factory, candidate, job):
        interview = await create_interview(session, candidate, job, status=InterviewStatus.READY, scheduled_at=T0)

        await reschedule_interview(session, interview.id, T0 + timedelta(days=1), now=T0, notify=False)

        assert (await reload_interview(session_factory, interview.id)).status == InterviewStatus.SCHEDULED
        assert await outbox_messages(session_factory) == []

    async def test_same_time_is_noop(self, session, session_factory, candidate, job):
        scheduled = T0 + timedelta(days=1)
        interview = await create_interview(session, candidate, job, scheduled_at=scheduled)

        result = await reschedule_interview(session, interview.id, scheduled, now=T0)

        assert result["changed"] is False
        assert await activities_for(session_factory, candidate.id) == []

    async def test_past_time_rejected(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, scheduled_at=T0 + timedelta(hours=1))

        with pytest.raises(InvalidScheduleTime):
            await reschedule_interview(session, interview.id, T0 - timedelta(minutes=5), now=T0)

    async def test_started_interview_rejected(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, status=InterviewStatus.IN_PROGRESS)

        with pytest.raises(InvalidStatus):
            await reschedule_interview(session, interview.id, T0 + timedelta(days=1), now=T0)

    async def test_terminal_returns_current_state(self, session, session_factory, candidate, job):
        interview = await create_interview(
            session, candidate, job, status=InterviewStatus.CANCELLED, scheduled_at=T0 + timedelta(hours=2)
        )

        result = await reschedule_interview(session, interview.id, T0 + timedelta(days=1), now=T0)

        assert result["changed"] is False
        assert result["status"] == "cancelled"
        stored = await reload_interview(session_factory, interview.id)
        assert stored.scheduled_at == T0 + timedelta(hours=2)
        assert await outbox_messages(session_factory) == []


class TestCancel:
    """Test cancel_interview."""

    async def test_cancel(self, session, session_factory, candidate, job):
        interview = await create_interview(session, candidate, job, scheduled_at=T0 + timedelta(hours=4))

        result = await cancel_interview(session, interview.id, now=T0, reason="Position filled")

        assert result["changed"] is True
        assert result["status"] == "cancelled"
        activities = await activities_for(session_factory, candidate.id)
        assert [a.activity_type for a in activities] == [ActivityType.INTERVIEW_CANCELLED]
        messages = await outbox_messages(session_factory)
        assert [m.dedupe_key for m in messages] == [f"interview.cancelled:{interview.id}"]
        assert messages[0].payload["reason"] == "Position filled"

    async def test_cancel_twice(self, session, session_factory, candidate, job):
        interview = await create_interview(session, candidate, job)

        await cancel_interview(session, interview.id, now=T0)
        result = await cancel_interview(session, interview.id, now=T0)

        assert result["changed"] is False
        assert len(await activities_for(session_factory, candidate.id)) == 1

    async def test_cannot_cancel_started(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, status=InterviewStatus.IN_PROGRESS)

        with pytest.raises(InvalidStatus):
            await cancel_interview(session, interview.id, now=T0)

    @pytest.mark.parametrize(
        "status",
        [
            InterviewStatus.COMPLETED,
            InterviewStatus.EXPIRED,
            InterviewStatus.MISSED,
            InterviewStatus.ABANDONED,
        ],
    )
    async def test_terminal_returns_current_state(self, session, session_factory, candidate, job, status):
        interview = await create_interview(session, candidate, job, status=status)

        result = await cancel_interview(session, interview.id, now=T0)

        assert result["changed"] is False
        assert result["status"] == status.value
        assert (await reload_interview(session_factory, interview.id)).status == status
        assert await activities_for(session_factory, candidate.id) == []
        assert await outbox_messages(session_factory) == []

    async def test_cancel_missing(self, session):
        with pytest.raises(InterviewNotFound):
            await cancel_interview(session, "missing", now=T0)


class TestReview:
    """Test mark_reviewed and clear_review."""

    async def test_mark_and_clear(self, session, session_factory, candidate, job):
        interview = await create_interview(session, candidate, job, status=InterviewStatus.COMPLETED)

        first = await mark_reviewed(session, interview.id, now=T0, reviewer="recruiter-1")
        second = await mark_reviewed(session, interview.id, now=T0 + timedelta(hours=1))

        assert first["already_reviewed"] is False
        assert first["reviewed_at"] == T0.isoformat()
        assert first["reviewed_by"] == "recruiter-1"
        assert second["already_reviewed"] is True
        assert second["reviewed_at"] == T0.isoformat()

        cleared = await clear_review(session, interview.id, now=T0)

        assert cleared["reviewed_at"] is None
        stored = await reload_interview(session_factory, interview.id)
        assert stored.reviewed_at is None
        assert stored.reviewed_by is None

    async def test_review_requires_completed(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, status=InterviewStatus.IN_PROGRESS)

        with pytest.raises(InvalidStatus):
            await mark_reviewed(session, interview.id, now=T0)
