"""
Interview lifecycle state machine.

Pure decision logic: given a current status and an event, decide the next
status and the activity that has to be recorded. Nothing here touches storage;
the repository applies a decided transition as a conditional update gated on
the status that was observed when the decision was made.

    pending/scheduled --(scheduled_at reached)--> ready
    pending/scheduled/ready --(candidate starts)--> in_progress
    in_progress/scheduled/ready --(submit)--> completed
    in_progress --(idle)--> abandoned
    scheduled/ready --(never started)--> missed
    pending/scheduled/ready/in_progress --(past expires_at)--> expired
    pending/scheduled/ready --(staff cancels)--> cancelled
    pending/scheduled/ready --(staff reschedules)--> scheduled

Rescheduling also accepts pending: an interview created without a time is
given one that way and becomes scheduled.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum as PyEnum
from typing import Optional

from core.exceptions import InvalidStatus
from core.utils.datetime import ensure_utc, minutes_until


class InterviewStatus(str, PyEnum):
    """Status of an AI interview."""

    PENDING = "pending"  # questions being generated, start immediately
    SCHEDULED = "scheduled"
    READY = "ready"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXPIRED = "expired"
    MISSED = "missed"
    ABANDONED = "abandoned"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset(
    {
        InterviewStatus.COMPLETED,
        InterviewStatus.EXPIRED,
        InterviewStatus.MISSED,
        InterviewStatus.ABANDONED,
        InterviewStatus.CANCELLED,
    }
)
ACTIVE_STATUSES = frozenset(set(InterviewStatus) - TERMINAL_STATUSES)
PRE_START_STATUSES = frozenset(
    {InterviewStatus.PENDING, InterviewStatus.SCHEDULED, InterviewStatus.READY}
)
ANSWERABLE_STATUSES = frozenset(
    {InterviewStatus.IN_PROGRESS, InterviewStatus.SCHEDULED, InterviewStatus.READY}
)


class ActivityType(str, PyEnum):
    """Candidate activity types written by the interview lifecycle."""

    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_STARTED = "interview_started"
    INTERVIEW_COMPLETED = "interview_completed"
    INTERVIEW_MISSED = "interview_missed"
    INTERVIEW_ABANDONED = "interview_abandoned"
    INTERVIEW_EXPIRED = "interview_expired"
    INTERVIEW_CANCELLED = "interview_cancelled"
    INTERVIEW_RESCHEDULED = "interview_rescheduled"
    INTERVIEW_REEVALUATED = "interview_reevaluated"
    STAGE_CHANGED = "stage_changed"


class LifecycleEvent(str, PyEnum):
    """Inputs that can move an interview between statuses."""

    BECOME_READY = "become_ready"
    START = "start"
    SUBMIT = "submit"
    ABANDON = "abandon"
    MISS = "miss"
    EXPIRE = "expire"
    CANCEL = "cancel"
    RESCHEDULE = "reschedule"


@dataclass(frozen=True)
class Transition:
    """A decided status change."""

    event: LifecycleEvent
    source: InterviewStatus
    target: InterviewStatus
    activity_type: Optional[ActivityType]

    @property
    def records_activity(self) -> bool:
        return self.activity_type is not None


# event -> (allowed sources, target, activity)
_RULES: dict[LifecycleEvent, tuple[frozenset, InterviewStatus, Optional[ActivityType]]] = {
    LifecycleEvent.BECOME_READY: (
        frozenset({InterviewStatus.PENDING, InterviewStatus.SCHEDULED}),
        InterviewStatus.READY,
        None,
    ),
    LifecycleEvent.START: (
        PRE_START_STATUSES,
        InterviewStatus.IN_PROGRESS,
        ActivityType.INTERVIEW_STARTED,
    ),
    LifecycleEvent.SUBMIT: (
        ANSWERABLE_STATUSES,
        InterviewStatus.COMPLETED,
        ActivityType.INTERVIEW_COMPLETED,
    ),
    LifecycleEvent.ABANDON: (
        frozenset({InterviewStatus.IN_PROGRESS}),
        InterviewStatus.ABANDONED,
        ActivityType.INTERVIEW_ABANDONED,
    ),
    LifecycleEvent.MISS: (
        frozenset({InterviewStatus.SCHEDULED, InterviewStatus.READY}),
        InterviewStatus.MISSED,
        ActivityType.INTERVIEW_MISSED,
    ),
    LifecycleEvent.EXPIRE: (
        PRE_START_STATUSES | {InterviewStatus.IN_PROGRESS},
        InterviewStatus.EXPIRED,
        ActivityType.INTERVIEW_EXPIRED,
    ),
    LifecycleEvent.CANCEL: (
        PRE_START_STATUSES,
        InterviewStatus.CANCELLED,
        ActivityType.INTERVIEW_CANCELLED,
    ),
    LifecycleEvent.RESCHEDULE: (
        PRE_START_STATUSES,
        InterviewStatus.SCHEDULED,
        ActivityType.INTERVIEW_RESCHEDULED,
    ),
}


def can_apply(status: InterviewStatus | str, event: LifecycleEvent) -> bool:
    return InterviewStatus(status) in _RULES[event][0]


def decide(status: InterviewStatus | str, event: LifecycleEvent) -> Transition:
    """
    Decide the transition for ``event`` from ``status``.

    Raises:
        InvalidStatus: the event is not accepted in the current status
    """
    current = InterviewStatus(status)
    sources, target, activity = _RULES[event]
    if current not in sources:
        raise InvalidStatus(
            current,
            f"Cannot {event.value.replace('_', ' ')} an interview that is {current.value}",
        )
    return Transition(event=event, source=current, target=target, activity_type=activity)


def is_terminal(status: InterviewStatus | str) -> bool:
    return InterviewStatus(status) in TERMINAL_STATUSES


# ==================== Time policy ==================== #
@dataclass(frozen=True)
class LifecyclePolicy:
    """Time constants governing the lifecycle."""

    ttl: timedelta = timedelta(hours=24)
    start_grace: timedelta = timedelta(minutes=5)
    idle_timeout: timedelta = timedelta(hours=2)
    missed_after: timedelta = timedelta(hours=2)

    @classmethod
    def from_settings(cls, settings) -> "LifecyclePolicy":
        return cls(
            ttl=settings.interview_ttl,
            start_grace=settings.start_grace,
            idle_timeout=settings.idle_timeout,
            missed_after=settings.missed_after,
        )


def compute_expires_at(scheduled_at: datetime, policy: LifecyclePolicy) -> datetime:
    """Expiry is always the scheduled time plus the fixed TTL."""
    return ensure_utc(scheduled_at) + policy.ttl


@dataclass(frozen=True)
class StartWindow:
    """Read-only projection of whether a candidate may start right now."""

    can_start: bool
    reason: Optional[str] = None
    expired: bool = False
    resumable: bool = False
    minutes_until_start: Optional[int] = None
    can_start_at: Optional[datetime] = None

    @property
    def too_early(self) -> bool:
        return self.minutes_until_start is not None and not self.can_start


def evaluate_start(
    status: InterviewStatus | str,
    scheduled_at: Optional[datetime],
    expires_at: datetime,
    now: datetime,
    policy: LifecyclePolicy,
    force_start: bool = False,
) -> StartWindow:
    """
    Decide whether the interview can be started at ``now``.

    ``force_start`` skips the grace-window check but never the expiry check.
    """
    current = InterviewStatus(status)
    now = ensure_utc(now)

    if current in TERMINAL_STATUSES:
        return StartWindow(
            can_start=False,
            reason=f"Interview is {current.value}",
            expired=current == InterviewStatus.EXPIRED,
        )

    if now > ensure_utc(expires_at):
        return StartWindow(can_start=False, reason="Interview has expired", expired=True)

    if current == InterviewStatus.IN_PROGRESS:
        return StartWindow(can_start=True, resumable=True)

    if scheduled_at is not None and not force_start:
        scheduled_at = ensure_utc(scheduled_at)
        can_start_at = scheduled_at - policy.start_grace
        if now < can_start_at:
            return StartWindow(
                can_start=False,
                reason="Interview has not started yet",
                minutes_until_start=minutes_until(scheduled_at, now),
                can_start_at=can_start_at,
            )

    return StartWindow(can_start=True)
