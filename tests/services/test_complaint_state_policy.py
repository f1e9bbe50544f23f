import pytest

from gov_complaints.core.exceptions import AuthorizationError, StateViolationError
from gov_complaints.models.base.enums import ComplaintStatus, UserRole
from gov_complaints.services.complaint.complaint_state_policy import (
    ComplaintTransition,
    allowed_transitions,
    ensure_allowed,
    evaluate,
    next_status,
)

ALLOWED = {
    (ComplaintStatus.NEW, ComplaintTransition.ACCEPT, UserRole.EMPLOYEE),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.ACCEPT, UserRole.EMPLOYEE),
    (ComplaintStatus.NEW, ComplaintTransition.CITIZEN_EDIT, UserRole.CITIZEN),
    (ComplaintStatus.DECLINED, ComplaintTransition.CITIZEN_EDIT, UserRole.CITIZEN),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.FINISH, UserRole.EMPLOYEE),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.DECLINE, UserRole.EMPLOYEE),
    (ComplaintStatus.IN_PROGRESS, ComplaintTransition.REQUEST_INFO, UserRole.EMPLOYEE),
}


def test_evaluate_matches_transition_table():
    for status in ComplaintStatus:
        for transition in ComplaintTransition:
            for role in UserRole:
                expected = (status, transition, role) in ALLOWED
                assert evaluate(status, transition, role) is expected, (status, transition, role)


def test_evaluate_accepts_raw_values():
    assert evaluate("declined", "citizen_edit", "citizen") is True
    assert evaluate("finished", "citizen_edit", "citizen") is False


@pytest.mark.parametrize("status", [ComplaintStatus.IN_PROGRESS, ComplaintStatus.FINISHED])
def test_citizen_edit_rejected_outside_new_and_declined(status):
    with pytest.raises(StateViolationError) as exc:
        ensure_allowed(status, ComplaintTransition.CITIZEN_EDIT, UserRole.CITIZEN)

    assert exc.value.current_status == status.value
    assert status.value in exc.value.message
    assert exc.value.field == "status"


def test_finished_is_terminal_for_employees():
    for transition in (ComplaintTransition.ACCEPT, ComplaintTransition.FINISH,
                       ComplaintTransition.DECLINE, ComplaintTransition.REQUEST_INFO):
        with pytest.raises(StateViolationError, match="finished"):
            ensure_allowed(ComplaintStatus.FINISHED, transition, UserRole.EMPLOYEE)


def test_wrong_role_is_authorization_error():
    with pytest.raises(AuthorizationError):
        ensure_allowed(ComplaintStatus.NEW, ComplaintTransition.ACCEPT, UserRole.CITIZEN)

    with pytest.raises(AuthorizationError):
        ensure_allowed(ComplaintStatus.NEW, ComplaintTransition.CITIZEN_EDIT, UserRole.EMPLOYEE)


def test_next_status():
    assert next_status(ComplaintStatus.NEW, ComplaintTransition.ACCEPT) == ComplaintStatus.IN_PROGRESS
    assert next_status(ComplaintStatus.DECLINED, ComplaintTransition.CITIZEN_EDIT) == ComplaintStatus.NEW
    assert next_status(ComplaintStatus.NEW, ComplaintTransition.CITIZEN_EDIT) == ComplaintStatus.NEW
    assert next_status(ComplaintStatus.IN_PROGRESS, ComplaintTransition.FINISH) == ComplaintStatus.FINISHED
    assert next_status(ComplaintStatus.IN_PROGRESS, ComplaintTransition.DECLINE) == ComplaintStatus.DECLINED
    assert next_status(ComplaintStatus.IN_PROGRESS, ComplaintTransition.REQUEST_INFO) == ComplaintStatus.IN_PROGRESS

    with pytest.raises(StateViolationError):
        next_status(ComplaintStatus.NEW, ComplaintTransition.FINISH)


def test_allowed_transitions_for_ui():
    assert allowed_transitions(ComplaintStatus.IN_PROGRESS, UserRole.EMPLOYEE) == {
        ComplaintTransition.ACCEPT,
        ComplaintTransition.FINISH,
        ComplaintTransition.DECLINE,
        ComplaintTransition.REQUEST_INFO,
    }
    assert allowed_transitions(ComplaintStatus.FINISHED, UserRole.CITIZEN) == frozenset()
