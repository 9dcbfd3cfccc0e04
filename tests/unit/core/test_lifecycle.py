"""
Tests for the interview lifecycle state machine.

Tests:
- Allowed and rejected transitions
- Start window (grace period, force start, expiry, resume)
- Expiry computation
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import InvalidStatus
from core.lifecycle import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    ActivityType,
    InterviewStatus,
    LifecycleEvent,
    LifecyclePolicy,
    can_apply,
    compute_expires_at,
    decide,
    evaluate_start,
    is_terminal,
)

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class TestDecide:
    """Test transition decisions."""

    @pytest.mark.parametrize(
        "source",
        [InterviewStatus.PENDING, InterviewStatus.SCHEDULED, InterviewStatus.READY],
    )
    def test_start_from_pre_start_statuses(self, source):
        """Test that a candidate can start from any pre-start status."""
        transition = decide(source, LifecycleEvent.START)

        assert transition.source == source
        assert transition.target == InterviewStatus.IN_PROGRESS
        assert transition.activity_type == ActivityType.INTERVIEW_STARTED

    def test_become_ready_records_no_activity(self):
        """Test that the informational ready transition has no activity."""
        transition = decide(InterviewStatus.SCHEDULED, LifecycleEvent.BECOME_READY)

        assert transition.target == InterviewStatus.READY
        assert not transition.records_activity

    def test_missed_only_from_scheduled_or_ready(self):
        """Test that in-progress interviews are abandoned, not missed."""
        assert decide(InterviewStatus.READY, LifecycleEvent.MISS).target == InterviewStatus.MISSED
        with pytest.raises(InvalidStatus):
            decide(InterviewStatus.IN_PROGRESS, LifecycleEvent.MISS)

    def test_abandon_only_from_in_progress(self):
        """Test abandon transition source."""
        transition = decide(InterviewStatus.IN_PROGRESS, LifecycleEvent.ABANDON)
        assert transition.target == InterviewStatus.ABANDONED
        assert transition.activity_type == ActivityType.INTERVIEW_ABANDONED

        with pytest.raises(InvalidStatus):
            decide(InterviewStatus.SCHEDULED, LifecycleEvent.ABANDON)

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES, key=lambda s: s.value))
    def test_terminal_statuses_accept_nothing(self, terminal):
        """Test that no event moves a terminal interview."""
        for event in LifecycleEvent:
            assert not can_apply(terminal, event)
            with pytest.raises(InvalidStatus) as exc_info:
                decide(terminal, event)
            assert exc_info.value.current_status == terminal.value

    def test_cancel_in_progress_rejected(self):
        """Test that a started interview cannot be cancelled."""
        with pytest.raises(InvalidStatus) as exc_info:
            decide(InterviewStatus.IN_PROGRESS, LifecycleEvent.CANCEL)
        assert exc_info.value.details["status"] == "in_progress"

    def test_reschedule_targets_scheduled(self):
        """Test that reschedule from pending or ready lands on scheduled."""
        for source in (InterviewStatus.PENDING, InterviewStatus.READY):
            assert decide(source, LifecycleEvent.RESCHEDULE).target == InterviewStatus.SCHEDULED

    def test_accepts_plain_string_status(self):
        """Test that a raw status string read from storage is accepted."""
        transition = decide("in_progress", LifecycleEvent.SUBMIT)
        assert transition.source == InterviewStatus.IN_PROGRESS
        assert transition.target == InterviewStatus.COMPLETED

    def test_active_and_terminal_partition_statuses(self):
        """Test that every status is either active or terminal."""
        assert ACTIVE_STATUSES | TERMINAL_STATUSES == set(InterviewStatus)
        assert not ACTIVE_STATUSES & TERMINAL_STATUSES
        assert is_terminal("completed")
        assert not is_terminal(InterviewStatus.READY)


class TestEvaluateStart:
    """Test the start window projection."""

    def test_too_early_reports_minutes(self):
        """Test start four minutes early without grace."""
        policy = LifecyclePolicy(start_grace=timedelta(0))
        scheduled = NOW + timedelta(minutes=4)

        window = evaluate_start(
            InterviewStatus.SCHEDULED, scheduled, scheduled + timedelta(hours=24), NOW, policy
        )

        assert not window.can_start
        assert window.too_early
        assert window.minutes_until_start == 4
        assert window.can_start_at == scheduled

    def test_minutes_round_up(self):
        """Test that partial minutes count as a full minute."""
        policy = LifecyclePolicy(start_grace=timedelta(0))
        scheduled = NOW + timedelta(minutes=3, seconds=10)

        window = evaluate_start(
            InterviewStatus.SCHEDULED, scheduled, scheduled + timedelta(hours=24), NOW, policy
        )

        assert window.minutes_until_start == 4

    def test_inside_grace_window(self):
        """Test that the default grace lets a candidate in four minutes early."""
        scheduled = NOW + timedelta(minutes=4)

        window = evaluate_start(
            InterviewStatus.SCHEDULED,
            scheduled,
            scheduled + timedelta(hours=24),
            NOW,
            LifecyclePolicy(),
        )

        assert window.can_start

    def test_grace_boundary(self):
        """Test can_start_at is scheduled time minus grace."""
        scheduled = NOW + timedelta(minutes=30)
        policy = LifecyclePolicy()

        window = evaluate_start(
            InterviewStatus.SCHEDULED, scheduled, scheduled + timedelta(hours=24), NOW, policy
        )

        assert window.can_start_at == scheduled - timedelta(minutes=5)
        assert window.minutes_until_start == 30

    def test_force_start_skips_window(self):
        """Test that force start bypasses the grace check."""
        scheduled = NOW + timedelta(hours=3)

        window = evaluate_start(
            InterviewStatus.SCHEDULED,
            scheduled,
            scheduled + timedelta(hours=24),
            NOW,
            LifecyclePolicy(),
            force_start=True,
        )

        assert window.can_start

    def test_force_start_never_skips_expiry(self):
        """Test that force start cannot revive an expired interview."""
        window = evaluate_start(
            InterviewStatus.READY,
            NOW - timedelta(hours=25),
            NOW - timedelta(minutes=1),
            NOW,
            LifecyclePolicy(),
            force_start=True,
        )

        assert not window.can_start
        assert window.expired

    def test_in_progress_is_resumable(self):
        """Test that an in-progress interview can be resumed."""
        window = evaluate_start(
            InterviewStatus.IN_PROGRESS,
            NOW - timedelta(minutes=10),
            NOW + timedelta(hours=20),
            NOW,
            LifecyclePolicy(),
        )

        assert window.can_start
        assert window.resumable

    def test_terminal_status_reported_before_expiry(self):
        """Test that a completed interview past expiry reports its status."""
        window = evaluate_start(
            InterviewStatus.COMPLETED,
            NOW - timedelta(days=3),
            NOW - timedelta(days=2),
            NOW,
            LifecyclePolicy(),
        )

        assert not window.can_start
        assert not window.expired
        assert window.reason == "Interview is completed"

    def test_pending_without_schedule_can_start(self):
        """Test immediate-start interviews."""
        window = evaluate_start(
            InterviewStatus.PENDING, None, NOW + timedelta(hours=24), NOW, LifecyclePolicy()
        )

        assert window.can_start
        assert window.minutes_until_start is None


class TestExpiry:
    """Test expiry computation."""

    def test_expiry_is_scheduled_plus_ttl(self):
        scheduled = NOW + timedelta(days=2)
        assert compute_expires_at(scheduled, LifecyclePolicy()) == scheduled + timedelta(hours=24)

    def test_naive_datetime_treated_as_utc(self):
        naive = datetime(2026, 3, 2, 9, 0)
        assert compute_expires_at(naive, LifecyclePolicy()) == NOW + timedelta(hours=24)

    def test_policy_from_settings(self):
        """Test policy is built from configurable settings."""

        class StubSettings:
            interview_ttl = timedelta(hours=48)
            start_grace = timedelta(minutes=10)
            idle_timeout = timedelta(hours=1)
            missed_after = timedelta(hours=3)

        policy = LifecyclePolicy.from_settings(StubSettings())

        assert policy.ttl == timedelta(hours=48)
        assert policy.start_grace == timedelta(minutes=10)
        assert policy.idle_timeout == timedelta(hours=1)
        assert policy.missed_after == timedelta(hours=3)
