"""
Tests for the candidate access gate.

Tests:
- Token lookups and the composed authorization
- Pre-flight projection
- Starting, resuming and the early-start window
- Expiry on access
"""

from datetime import timedelta

import pytest

from api.services.access import authorize, lookup_by_access_token, lookup_by_interview_id, preflight, start_interview
from core.exceptions import InterviewExpired, InvalidStatus, InvalidToken, TooEarly
from core.lifecycle import ActivityType, InterviewStatus, LifecyclePolicy
from tests.factories import T0, activities_for, create_interview, reload_interview

NO_GRACE = LifecyclePolicy(start_grace=timedelta(0))


class TestAuthorize:
    """Test token and id lookups."""

    async def test_lookup_by_token(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, access_token="token-abc")

        assert (await lookup_by_access_token(session, "token-abc")).id == interview.id
        assert await lookup_by_access_token(session, "other") is None
        assert await lookup_by_access_token(session, "") is None

    async def test_lookup_by_id_requires_matching_token(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, access_token="token-abc")

        assert (await lookup_by_interview_id(session, interview.id, "token-abc")).id == interview.id
        assert await lookup_by_interview_id(session, interview.id, "wrong") is None
        assert await lookup_by_interview_id(session, "missing", "token-abc") is None

    async def test_route_is_token(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, access_token="token-abc")

        assert (await authorize(session, "token-abc")).id == interview.id

    async def test_route_is_id_with_token(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, access_token="token-abc")

        assert (await authorize(session, interview.id, "token-abc")).id == interview.id

    async def test_route_and_token_both_token(self, session, candidate, job):
        interview = await create_interview(session, candidate, job, access_token="token-abc")

        assert (await authorize(session, "token-abc", "token-abc")).id == interview.id

    async def test_mismatch_is_invalid_token(self, session, candidate, job):
        """Test that an id paired with another interview's token is rejected."""
        first = await create_interview(session, candidate, job, access_token="token-one")
        other_job_interview = await create_interview(
            session, candidate, job, status=InterviewStatus.COMPLETED, access_token="token-two"
        )

        with pytest.raises(InvalidToken):
            await authorize(session, first.id, "token-two")
        with pytest.raises(InvalidToken):
            await authorize(session, other_job_interview.id, "token-one")
        with pytest.raises(InvalidToken):
            await authorize(session, "unknown-token")


class TestPreflight:
    """Test the read-only pre-flight check."""

    async def test_too_early(self, session, session_factory, candidate, job):
        scheduled = T0 + timedelta(minutes=30)
        interview = await create_interview(
            session, candidate, job, scheduled_at=scheduled, access_token="token-abc"
        )

        result = await preflight(session, "token-abc", None, T0)

        assert result["interview_id"] == interview.id
        assert result["can_start"] is False
        assert result["minutes_until_start"] == 30
        assert result["can_start_at"] == (scheduled - timedelta(minutes=5)).isoformat()
        assert result["job"]["title"] == "Backend Engineer"
        assert result["total_questions"] == 8

        stored = await reload_interview(session_factory, interview.id)
        assert stored.status == InterviewStatus.SCHEDULED

    async def test_expired_is_not_mutated(self, session, session_factory, candidate, job):
        """Test that pre-flight never expires the interview itself."""
        interview = await create_interview(
            session,
            candidate,
            job,
            status=InterviewStatus.READY,
            scheduled_at=T0 - timedelta(hours=30),
            expires_at=T0 - timedelta(hours=6),
            access_token="token-abc",
        )

        result = await preflight(session, interview.id, "token-abc", T0)

        assert result["can_start"] is False
        assert result["reason"] == "Interview has expired"
        stored = await reload_interview(session_factory, interview.id)
        assert stored.status == InterviewStatus.READY


class TestStartInterview:
    """Test starting an interview."""

    async def test_start_four_minutes_early(self, session, session_factory, candidate, job):
        """Test TooEarly four minutes before the start, then a forced start."""
        scheduled = T0 + timedelta(minutes=4)
        interview = await create_interview(
            session, candidate, job, scheduled_at=scheduled, access_token="token-abc"
        )

        with pytest.raises(TooEarly) as exc_info:
            await start_interview(session, "token-abc", None, False, T0, policy=NO_GRACE)
        assert exc_info.value.minutes_until_start == 4
        assert exc_info.value.details["can_start_at"] == scheduled.isoformat()

        result = await start_interview(session, "token-abc", None, True, T0, policy=NO_GRACE)

        assert result["interview_id"] == interview.id
        assert result["status"] == "in_progress"
        assert len(result["questions"]) == 8
        stored = await reload_interview(session_factory, interview.id)
        assert stored.status == InterviewStatus.IN_PROGRESS
        assert stored.started_at == T0

    async def test_start_inside_grace_window(self, session, candidate, job):
        await create_interview(
            session, candidate, job, scheduled_at=T0 + timedelta(minutes=4), access_token="token-abc"
        )

        result = await start_interview(session, "token-abc", None, False, T0)

        assert result["status"] == "in_progress"

    async def test_questions_hide_rubric(self, session, candidate, job):
        await create_interview(session, candidate, job, status=InterviewStatus.READY, access_token="token-abc")

        result = await start_interview(session, "token-abc", None, False, T0)

        first = result["questions"][0]
        assert set(first) == {
            "id",
            "order",
            "question",
            "category",
            "difficulty",
            "estimated_time_minutes",
            "answer",
        }
        assert [q["order"] for q in result["questions"]] == list(range(1, 9))

    async def test_start_records_activity(self, session, session_factory, candidate, job):
        await create_interview(session, candidate, job, status=InterviewStatus.READY, access_token="token-abc")

        await start_interview(session, "token-abc", None, False, T0)

        activities = await activities_for(session_factory, candidate.id)
        assert [a.activity_type for a in activities] == [ActivityType.INTERVIEW_STARTED]
        assert activities[0].old_value == "ready"
        assert activities[0].new_value == "in_progress"

    async def test_resume_is_informational(self, session, session_factory, candidate, job):
        """Test that restarting an in-progress interview changes nothing."""
        started = T0 - timedelta(minutes=10)
        await create_interview(
            session,
            candidate,
            job,
            status=InterviewStatus.IN_PROGRESS,
            started_at=started,
            access_token="token-abc",
        )

        result = await start_interview(session, "token-abc", None, False, T0)

        assert result["status"] == "in_progress"
        assert result["started_at"] == started.isoformat()
        assert await activities_for(session_factory, candidate.id) == []

    async def test_expired_on_access(self, session, session_factory, candidate, job):
        """Test that a start past expiry moves the interview to expired."""
        interview = await create_interview(
            session,
            candidate,
            job,
            status=InterviewStatus.READY,
            scheduled_at=T0 - timedelta(hours=25),
            expires_at=T0 - timedelta(hours=1),
            access_token="token-abc",
        )

        with pytest.raises(InterviewExpired):
            await start_interview(session, "token-abc", None, True, T0)

        stored = await reload_interview(session_factory, interview.id)
        assert stored.status == InterviewStatus.EXPIRED
        activities = await activities_for(session_factory, candidate.id)
        assert [a.activity_type for a in activities] == [ActivityType.INTERVIEW_EXPIRED]

    @pytest.mark.parametrize(
        "status",
        [InterviewStatus.COMPLETED, InterviewStatus.CANCELLED, InterviewStatus.MISSED],
    )
    async def test_terminal_status_rejected(self, session, candidate, job, status):
        await create_interview(session, candidate, job, status=status, access_token="token-abc")

        with pytest.raises(InvalidStatus) as exc_info:
            await start_interview(session, "token-abc", None, False, T0)

        assert exc_info.value.current_status == status.value

    async def test_invalid_token(self, session, candidate, job):
        await create_interview(session, candidate, job, access_token="token-abc")

        with pytest.raises(InvalidToken):
            await start_interview(session, "token-xyz", None, False, T0)
