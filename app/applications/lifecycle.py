"""
Application status lifecycle.

    pending ──► under_review ──► approved | rejected
       │             ▲  │
       │             │  ▼
       └──────► additional_info_required ──► approved | rejected

approved and rejected are terminal; entering either stamps ``completed_on``.
"""

from datetime import datetime, timezone
from typing import Dict, FrozenSet, Optional

from app.exceptions import InvalidTransitionError
from app.models import Application, ApplicationStatus

TERMINAL_STATUSES: FrozenSet[ApplicationStatus] = frozenset({
    ApplicationStatus.APPROVED,
    ApplicationStatus.REJECTED,
})

TRANSITIONS: Dict[ApplicationStatus, FrozenSet[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.ADDITIONAL_INFO_REQUIRED,
    }),
    ApplicationStatus.UNDER_REVIEW: frozenset({
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.ADDITIONAL_INFO_REQUIRED,
    }),
    ApplicationStatus.ADDITIONAL_INFO_REQUIRED: frozenset({
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    }),
    ApplicationStatus.APPROVED: frozenset(),
    ApplicationStatus.REJECTED: frozenset(),
}


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES


def allowed_transitions(status: ApplicationStatus) -> FrozenSet[ApplicationStatus]:
    return TRANSITIONS[ApplicationStatus(status)]


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return ApplicationStatus(target) in allowed_transitions(current)


def apply_transition(
    application: Application,
    target: ApplicationStatus,
    remarks: Optional[str] = None,
    officer_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Application:
    """Move *application* to *target*, mutating it in place."""
    current = ApplicationStatus(application.status)
    target = ApplicationStatus(target)
    if not can_transition(current, target):
        raise InvalidTransitionError(current.value, target.value)

    application.status = target
    application.remarks = remarks
    if officer_id is not None:
        application.officer_id = officer_id
    if is_terminal(target):
        application.completed_on = now or datetime.now(timezone.utc)
    else:
        application.completed_on = None
    return application
