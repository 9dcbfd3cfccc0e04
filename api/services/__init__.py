"""
API Services Layer.

Transactional interview operations used by the HTTP routes and the
background workers.
"""

from api.services.interviews import (
    list_interviews,
    get_interview,
    reschedule_interview,
    cancel_interview,
    mark_reviewed,
    clear_review,
)

from api.services.scheduling import (
    schedule_interview,
    build_interview_link,
)

from api.services.access import (
    preflight,
    start_interview,
)

from api.services.submissions import (
    save_answer,
    submit_interview,
    reevaluate_defaulted,
)

from api.services.reconciliation import (
    run_status_sweep,
    run_reminder_sweep,
)

from api.services.outbox import (
    enqueue,
    deliver_pending,
)

__all__ = [
    # Admin
    "list_interviews",
    "get_interview",
    "reschedule_interview",
    "cancel_interview",
    "mark_reviewed",
    "clear_review",
    # Scheduling
    "schedule_interview",
    "build_interview_link",
    # Candidate access
    "preflight",
    "start_interview",
    # Answers
    "save_answer",
    "submit_interview",
    "reevaluate_defaulted",
    # Reconciliation
    "run_status_sweep",
    "run_reminder_sweep",
    # Outbox
    "enqueue",
    "deliver_pending",
]
