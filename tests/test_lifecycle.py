"""
Unit tests for the application status lifecycle.
"""

from datetime import datetime, timezone

import pytest

from app.applications.lifecycle import (
    TERMINAL_STATUSES, allowed_transitions, apply_transition, can_transition, is_terminal,
)
from app.exceptions import InvalidTransitionError
from app.models import Application, ApplicationStatus


def make_application(status=ApplicationStatus.PENDING, **kwargs) -> Application:
    return Application(citizen_id="c-1", service_id="s-1", status=status, **kwargs)


# ── Transition table ─────────────────────────────────────────────────

def test_terminal_statuses():
    assert TERMINAL_STATUSES == {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED}
    assert is_terminal(ApplicationStatus.APPROVED)
    assert not is_terminal(ApplicationStatus.UNDER_REVIEW)


@pytest.mark.parametrize("status", list(TERMINAL_STATUSES))
def test_terminal_statuses_have_no_exits(status):
    assert allowed_transitions(status) == frozenset()


def test_pending_can_move_anywhere_else():
    assert allowed_transitions(ApplicationStatus.PENDING) == {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.ADDITIONAL_INFO_REQUIRED,
    }


def test_additional_info_returns_to_review():
    assert can_transition(ApplicationStatus.ADDITIONAL_INFO_REQUIRED, ApplicationStatus.UNDER_REVIEW)
    assert not can_transition(ApplicationStatus.UNDER_REVIEW, ApplicationStatus.PENDING)


def test_no_self_transitions():
    for status in ApplicationStatus:
        assert not can_transition(status, status)


def test_accepts_raw_values():
    assert can_transition("pending", "approved")


# ── apply_transition ─────────────────────────────────────────────────

def test_approval_stamps_completed_on():
    application = make_application()
    now = datetime(2025, 10, 3, 12, 0, tzinfo=timezone.utc)

    apply_transition(application, ApplicationStatus.APPROVED, remarks="All good", officer_id="o-1", now=now)

    assert application.status == ApplicationStatus.APPROVED
    assert application.completed_on == now
    assert application.remarks == "All good"
    assert application.officer_id == "o-1"


def test_non_terminal_target_leaves_completed_on_empty():
    application = make_application()
    apply_transition(application, ApplicationStatus.ADDITIONAL_INFO_REQUIRED, remarks="Photo is blurry")

    assert application.completed_on is None
    assert application.remarks == "Photo is blurry"


def test_remarks_are_replaced_on_each_transition():
    application = make_application(remarks="old")
    apply_transition(application, ApplicationStatus.UNDER_REVIEW)
    assert application.remarks is None


def test_officer_kept_when_not_given():
    application = make_application(officer_id="o-1")
    apply_transition(application, ApplicationStatus.UNDER_REVIEW)
    assert application.officer_id == "o-1"


def test_leaving_terminal_state_raises():
    application = make_application(status=ApplicationStatus.REJECTED)

    with pytest.raises(InvalidTransitionError) as e:
        apply_transition(application, ApplicationStatus.UNDER_REVIEW)

    assert e.value.status_code == 409
    assert e.value.details == {"current": "rejected", "target": "under_review"}
    assert application.status == ApplicationStatus.REJECTED


def test_completed_on_tracks_terminal_status():
    application = make_application()
    for target in (
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.ADDITIONAL_INFO_REQUIRED,
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.REJECTED,
    ):
        apply_transition(application, target)
        assert (application.completed_on is not None) == is_terminal(target)
