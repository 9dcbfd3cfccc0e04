"""
Tests for interview scheduling.

Tests:
- Successful scheduling (row, questions, activities, stage, invite)
- Validation errors and missing collaborators
- One active interview per candidate/job pair
- Question generation failures and timeouts
"""

from datetime import timedelta

import pytest

from api.schemas.interviews import ScheduleInterviewRequest
from api.services import scheduling
from api.services.scheduling import build_interview_link, generate_access_token, schedule_interview
from core.exceptions import (
    CandidateNotFound,
    InterviewExists,
    InvalidScheduleTime,
    JobNotFound,
    QuestionGenerationFailed,
)
from core.lifecycle import ActivityType, InterviewStatus
from database.models import CandidateStage, Candidate
from tests.factories import (
    T0,
    FakeGenerator,
    activities_for,
    create_candidate,
    create_interview,
    outbox_messages,
    questions_for,
    reload_interview,
)


def make_request(candidate, job, **overrides):
    values = {
        "candidate_id": candidate.id,
        "job_id": job.id,
        "scheduled_at": T0 + timedelta(days=1),
        "duration_minutes": 30,
    }
    values.update(overrides)
    return ScheduleInterviewRequest(**values)


class TestAccessToken:
    """Test access token and link generation."""

    def test_tokens_are_unique_and_url_safe(self):
        tokens = {generate_access_token() for _ in range(50)}
        assert len(tokens) == 50
        assert all(len(t) >= 40 and "/" not in t and "+" not in t for t in tokens)

    def test_link_uses_app_url(self):
        assert build_interview_link("abc") == "https://interviews.example.com/interview/abc"


class TestScheduleInterview:
    """Test schedule_interview service."""

    async def test_schedules_interview(self, session, session_factory, candidate, job):
        """Test a scheduled interview with generated questions."""
        generator = FakeGenerator(count=9)

        result = await schedule_interview(
            session, make_request(candidate, job), generator=generator, now=T0
        )

        interview = result["interview"]
        assert interview["status"] == "scheduled"
        assert interview["expires_at"] == (T0 + timedelta(days=2)).isoformat()
        assert interview["total_questions"] == 9
        assert interview["model_used"] == "fake-model"
        assert result["questions_generated"] == 9
        assert result["warnings"] == []
        assert result["interview_link"].startswith("https://interviews.example.com/interview/")

        stored = await reload_interview(session_factory, interview["id"])
        assert result["interview_link"].endswith(stored.access_token)

        questions = await questions_for(session_factory, interview["id"])
        assert [q.question_order for q in questions] == list(range(1, 10))
        assert questions[0].question_text == "Generated question 1?"

    async def test_records_activity_and_advances_stage(self, session, session_factory, candidate, job):
        """Test interview_scheduled activity and the advance-only stage move."""
        await schedule_interview(session, make_request(candidate, job), generator=FakeGenerator(), now=T0)

        activities = await activities_for(session_factory, candidate.id)
        types = {a.activity_type for a in activities}
        assert types == {ActivityType.INTERVIEW_SCHEDULED, ActivityType.STAGE_CHANGED}

        stage_change = next(a for a in activities if a.activity_type == ActivityType.STAGE_CHANGED)
        assert stage_change.old_value == "screening"
        assert stage_change.new_value == "ai_interview"

        async with session_factory() as fresh:
            stored = await fresh.get(Candidate, candidate.id)
        assert stored.stage == CandidateStage.AI_INTERVIEW
        assert stored.last_activity_at == T0

    async def test_stage_never_moves_back(self, session, session_factory, job):
        """Test that a candidate already past the AI interview keeps their stage."""
        candidate = await create_candidate(session, email="late@example.com", stage=CandidateStage.ONSITE)

        await schedule_interview(session, make_request(candidate, job), generator=FakeGenerator(), now=T0)

        async with session_factory() as fresh:
            stored = await fresh.get(Candidate, candidate.id)
        assert stored.stage == CandidateStage.ONSITE
        activities = await activities_for(session_factory, candidate.id)
        assert [a.activity_type for a in activities] == [ActivityType.INTERVIEW_SCHEDULED]

    async def test_enqueues_invite(self, session, session_factory, candidate, job):
        """Test that the invite email is recorded in the outbox."""
        result = await schedule_interview(
            session,
            make_request(candidate, job, custom_message="See you soon", timezone="Europe/Berlin"),
            generator=FakeGenerator(),
            now=T0,
        )

        messages = await outbox_messages(session_factory)
        assert len(messages) == 1
        message = messages[0]
        assert message.dedupe_key == f"interview.invite:{result['interview']['id']}"
        assert message.payload["to"] == "ada@example.com"
        assert message.payload["custom_message"] == "See you soon"
        assert message.payload["timezone"] == "Europe/Berlin"
        assert message.payload["interview_link"] == result["interview_link"]

    async def test_no_invite_when_disabled(self, session, session_factory, candidate, job):
        await schedule_interview(
            session,
            make_request(candidate, job, send_immediate_invite=False),
            generator=FakeGenerator(),
            now=T0,
        )

        assert await outbox_messages(session_factory) == []

    async def test_immediate_interview_is_pending(self, session, candidate, job):
        """Test that an interview without a time can be started right away."""
        result = await schedule_interview(
            session, make_request(candidate, job, scheduled_at=None), generator=FakeGenerator(), now=T0
        )

        assert result["interview"]["status"] == "pending"
        assert result["interview"]["scheduled_at"] is None
        assert result["interview"]["expires_at"] == (T0 + timedelta(hours=24)).isoformat()

    async def test_rejects_past_time(self, session, candidate, job):
        generator = FakeGenerator()
        with pytest.raises(InvalidScheduleTime):
            await schedule_interview(
                session,
                make_request(candidate, job, scheduled_at=T0 - timedelta(minutes=1)),
                generator=generator,
                now=T0,
            )
        assert generator.calls == 0

    async def test_unknown_candidate(self, session, job):
        with pytest.raises(CandidateNotFound):
            await schedule_interview(
                session,
                ScheduleInterviewRequest(candidate_id="missing", job_id=job.id),
                generator=FakeGenerator(),
                now=T0,
            )

    async def test_unknown_job(self, session, candidate):
        with pytest.raises(JobNotFound):
            await schedule_interview(
                session,
                ScheduleInterviewRequest(candidate_id=candidate.id, job_id="missing"),
                generator=FakeGenerator(),
                now=T0,
            )

    async def test_existing_active_interview(self, session, candidate, job):
        """Test that an in-progress interview blocks a second one for the pair."""
        existing = await create_interview(session, candidate, job, status=InterviewStatus.IN_PROGRESS)
        generator = FakeGenerator()

        with pytest.raises(InterviewExists) as exc_info:
            await schedule_interview(session, make_request(candidate, job), generator=generator, now=T0)

        assert exc_info.value.interview_id == existing.id
        assert exc_info.value.details == {"interview_id": existing.id, "status": "in_progress"}
        assert generator.calls == 0

    async def test_terminal_interview_does_not_block(self, session, candidate, job):
        """Test that a finished interview allows scheduling a new one."""
        await create_interview(session, candidate, job, status=InterviewStatus.MISSED)

        result = await schedule_interview(
            session, make_request(candidate, job), generator=FakeGenerator(), now=T0
        )

        assert result["interview"]["status"] == "scheduled"

    async def test_generation_failure_creates_nothing(self, session, session_factory, candidate, job):
        with pytest.raises(QuestionGenerationFailed):
            await schedule_interview(
                session,
                make_request(candidate, job),
                generator=FakeGenerator(error=RuntimeError("quota exceeded")),
                now=T0,
            )

        assert await activities_for(session_factory, candidate.id) == []
        assert await outbox_messages(session_factory) == []

    async def test_generation_timeout(self, session, candidate, job):
        with pytest.raises(QuestionGenerationFailed) as exc_info:
            await schedule_interview(
                session,
                make_request(candidate, job),
                generator=FakeGenerator(delay=1.0),
                now=T0,
                generation_timeout=0.05,
            )

        assert exc_info.value.details["timeout_seconds"] == 0.05

    async def test_question_insert_failure_keeps_interview(
        self, session, session_factory, candidate, job, monkeypatch
    ):
        """Test that a failed question insert leaves the interview and returns a warning."""
        build = scheduling._build_questions

        def clashing_orders(interview_id, question_set):
            questions = build(interview_id, question_set)
            for question in questions:
                question.question_order = 1
            return questions

        monkeypatch.setattr(scheduling, "_build_questions", clashing_orders)

        result = await schedule_interview(
            session, make_request(candidate, job), generator=FakeGenerator(count=8), now=T0
        )

        assert len(result["warnings"]) == 1
        assert "questions could not be saved" in result["warnings"][0]
        stored = await reload_interview(session_factory, result["interview"]["id"])
        assert stored.status == InterviewStatus.SCHEDULED
        assert await questions_for(session_factory, stored.id) == []
        # the invite was committed with the interview
        assert len(await outbox_messages(session_factory)) == 1
