from datetime import datetime, timedelta, timezone

from gov_complaints.models.complaint.complaint import Complaint

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


def make_complaint(**kwargs) -> Complaint:
    return Complaint(tracking_number="CMP-TEST", version=1, **kwargs)


def test_unlocked_by_default():
    complaint = make_complaint()

    assert complaint.is_locked(NOW) is False
    assert complaint.check_and_unlock_if_expired(NOW) is False


def test_lock_sets_claim_window_and_assignee():
    complaint = make_complaint()

    complaint.lock("employee-1", 480, now=NOW)

    assert complaint.assigned_to == "employee-1"
    assert complaint.locked_at == NOW
    assert complaint.lock_expires_at == NOW + timedelta(hours=8)
    assert complaint.is_locked(NOW + timedelta(hours=7, minutes=59)) is True
    assert complaint.is_locked(NOW + timedelta(hours=8)) is False


def test_lock_without_expiry_counts_as_locked():
    complaint = make_complaint(locked_at=NOW, lock_expires_at=None, assigned_to="employee-1")

    assert complaint.is_locked(NOW + timedelta(days=30)) is True
    assert complaint.check_and_unlock_if_expired(NOW + timedelta(days=30)) is False


def test_unlock_keeps_assignee():
    complaint = make_complaint()
    complaint.lock("employee-1", 30, now=NOW)

    complaint.unlock()

    assert complaint.locked_at is None
    assert complaint.lock_expires_at is None
    assert complaint.assigned_to == "employee-1"


def test_check_and_unlock_if_expired_is_idempotent():
    complaint = make_complaint()
    complaint.lock("employee-1", 30, now=NOW)
    later = NOW + timedelta(minutes=31)

    assert complaint.check_and_unlock_if_expired(later) is True
    assert complaint.locked_at is None
    assert complaint.lock_expires_at is None

    assert complaint.check_and_unlock_if_expired(later) is False


def test_check_and_unlock_leaves_active_lock():
    complaint = make_complaint()
    complaint.lock("employee-1", 30, now=NOW)

    assert complaint.check_and_unlock_if_expired(NOW + timedelta(minutes=5)) is False
    assert complaint.locked_at == NOW


def test_naive_timestamps_are_read_as_utc():
    complaint = make_complaint(
        locked_at=NOW.replace(tzinfo=None),
        lock_expires_at=(NOW + timedelta(minutes=30)).replace(tzinfo=None),
        assigned_to="employee-1",
    )

    assert complaint.is_locked(NOW + timedelta(minutes=10)) is True
    assert complaint.has_expired_lock(NOW + timedelta(minutes=45)) is True


def test_is_locked_by_other():
    complaint = make_complaint()
    complaint.lock("employee-1", 30, now=NOW)

    assert complaint.is_locked_by_other("employee-2", NOW) is True
    assert complaint.is_locked_by_other("employee-1", NOW) is False
    assert complaint.is_locked_by_other("employee-2", NOW + timedelta(hours=1)) is False


def test_info_request_and_version_helpers():
    complaint = make_complaint()

    complaint.request_info("Which building?", now=NOW)
    assert complaint.info_requested is True
    assert complaint.info_request_message == "Which building?"
    assert complaint.info_requested_at == NOW

    complaint.clear_info_request()
    assert complaint.info_requested is False
    assert complaint.info_request_message is None
    assert complaint.info_requested_at is None

    complaint.increment_version()
    assert complaint.version == 2
