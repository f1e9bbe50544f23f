from datetime import datetime, timedelta, timezone

from gov_complaints.models import Complaint
from gov_complaints.models.base.enums import ComplaintStatus

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def _claim(service, citizen, employee, complaint_data, clock, at):
    clock.now = at
    complaint = service.create_complaint(citizen, complaint_data)
    return service.accept_complaint(complaint, employee)


def test_sweep_releases_only_expired_claims(service, lock_service, session, citizen, employee,
                                            complaint_data, clock):
    stale = _claim(service, citizen, employee, complaint_data, clock, NOW - timedelta(hours=9))
    fresh = [
        _claim(service, citizen, employee, complaint_data, clock, NOW - timedelta(hours=1)),
        _claim(service, citizen, employee, complaint_data, clock, NOW),
    ]
    clock.now = NOW

    assert lock_service.unlock_expired_complaints() == 1

    session.expire_all()
    assert stale.locked_at is None
    assert stale.lock_expires_at is None
    assert stale.status == ComplaintStatus.IN_PROGRESS
    assert stale.assigned_to == employee.id
    assert stale.version == 2
    for complaint in fresh:
        assert complaint.is_locked(NOW)
        assert complaint.version == 2


def test_sweep_is_idempotent(service, lock_service, citizen, employee, complaint_data, clock):
    _claim(service, citizen, employee, complaint_data, clock, NOW - timedelta(hours=9))
    clock.now = NOW

    assert lock_service.unlock_expired_complaints() == 1
    assert lock_service.unlock_expired_complaints() == 0


def test_sweep_with_nothing_expired(lock_service, accepted_complaint):
    assert lock_service.unlock_expired_complaints(now=NOW + timedelta(hours=1)) == 0
    assert accepted_complaint.is_locked(NOW + timedelta(hours=1))


def test_sweep_ignores_closed_complaints(service, lock_service, session, citizen, employee, complaint_data, clock):
    complaint = _claim(service, citizen, employee, complaint_data, clock, NOW - timedelta(hours=9))
    service.finish_complaint(complaint, employee, "Pipe replaced")
    complaint.locked_at = NOW - timedelta(hours=9)
    complaint.lock_expires_at = NOW - timedelta(hours=1)
    session.commit()
    clock.now = NOW

    assert lock_service.unlock_expired_complaints() == 0
    assert complaint.status == ComplaintStatus.FINISHED


def test_released_complaint_can_be_claimed_again(service, lock_service, citizen, employee, second_employee,
                                                 complaint_data, clock):
    complaint = _claim(service, citizen, employee, complaint_data, clock, NOW - timedelta(hours=9))
    clock.now = NOW
    lock_service.unlock_expired_complaints()

    service.accept_complaint(complaint, second_employee)

    assert complaint.assigned_to == second_employee.id
    assert complaint.is_locked(NOW)
    assert complaint.version == 3


def test_sweep_skips_row_changed_by_concurrent_writer(service, lock_service, session, other_session, citizen,
                                                       employee, complaint_data, clock, monkeypatch):
    contested = _claim(service, citizen, employee, complaint_data, clock, NOW - timedelta(hours=9))
    untouched = _claim(service, citizen, employee, complaint_data, clock, NOW - timedelta(hours=9))
    clock.now = NOW
    find_expired_locks = lock_service.repository.find_expired_locks

    def find_then_edit_elsewhere(now):
        found = find_expired_locks(now)
        row = other_session.get(Complaint, contested.id)
        row.admin_notes = "edited by another request"
        row.increment_version()
        other_session.commit()
        return found

    monkeypatch.setattr(lock_service.repository, "find_expired_locks", find_then_edit_elsewhere)

    assert lock_service.unlock_expired_complaints() == 1

    session.expire_all()
    assert untouched.locked_at is None
    assert contested.locked_at is not None
    assert contested.version == 3
    assert contested.admin_notes == "edited by another request"
