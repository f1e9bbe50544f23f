from datetime import datetime, timedelta, timezone

import pytest

from gov_complaints.core.exceptions import ResourceNotFoundError, ValidationError
from gov_complaints.models.base.enums import AttachmentType, ComplaintStatus
from gov_complaints.repositories.complaint import ComplaintAttachmentRepository, ComplaintRepository

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def repository(session):
    return ComplaintRepository(session)


@pytest.fixture
def attachments(session):
    return ComplaintAttachmentRepository(session)


@pytest.fixture
def make_row(repository, session, citizen, entity):
    counter = iter(range(1, 1000))

    def _make(**overrides):
        data = {
            "tracking_number": f"CMP-20261019-{next(counter):010d}",
            "user_id": citizen.id,
            "entity_id": entity.id,
            "complaint_kind": "streetlight",
            "description": "Lamp out for a week",
            "location": "Oak Ave 3",
        }
        complaint = repository.create_complaint(data)
        for key, value in overrides.items():
            setattr(complaint, key, value)
        session.commit()
        return complaint

    return _make


def test_create_complaint_defaults(make_row):
    complaint = make_row()

    assert complaint.status == ComplaintStatus.NEW
    assert complaint.version == 1
    assert complaint.info_requested is False
    assert complaint.locked_at is None


@pytest.mark.parametrize("field", ["entity_id", "complaint_kind", "description", "location"])
def test_create_complaint_requires_fields(repository, citizen, entity, field):
    data = {
        "tracking_number": "CMP-20261019-AAAAAAAAAA",
        "user_id": citizen.id,
        "entity_id": entity.id,
        "complaint_kind": "streetlight",
        "description": "Lamp out",
        "location": "Oak Ave 3",
    }
    data[field] = "   "

    with pytest.raises(ValidationError) as exc:
        repository.create_complaint(data)

    assert exc.value.field == field


def test_tracking_number_lookup_and_exists(repository, make_row):
    complaint = make_row()

    assert repository.find_by_tracking_number(complaint.tracking_number).id == complaint.id
    assert repository.tracking_number_exists(complaint.tracking_number) is True
    assert repository.tracking_number_exists("CMP-00000000-NOPE") is False
    assert repository.find_by_tracking_number("CMP-00000000-NOPE") is None


def test_soft_deleted_rows_are_hidden(repository, session, make_row, entity, citizen):
    kept = make_row()
    gone = make_row()
    repository.soft_delete(gone, now=NOW)
    session.commit()

    assert repository.find_by_tracking_number(gone.tracking_number) is None
    assert repository.find_by_tracking_number(gone.tracking_number, include_deleted=True).id == gone.id
    assert repository.tracking_number_exists(gone.tracking_number) is True
    assert [c.id for c in repository.find_by_entity(entity.id)] == [kept.id]
    assert [c.id for c in repository.find_by_user(citizen.id)] == [kept.id]
    assert repository.find_by_id(gone.id) is None
    with pytest.raises(ResourceNotFoundError):
        repository.get_by_id(gone.id)


def test_list_filters(repository, make_row, entity, employee):
    new = make_row()
    claimed = make_row(status=ComplaintStatus.IN_PROGRESS, assigned_to=employee.id)
    make_row(status=ComplaintStatus.FINISHED, assigned_to=employee.id)

    assert [c.id for c in repository.find_new()] == [new.id]
    assert [c.id for c in repository.find_by_entity(entity.id, status=ComplaintStatus.IN_PROGRESS)] == [claimed.id]
    assert len(repository.find_assigned_to(employee.id)) == 2
    assert [c.id for c in repository.find_assigned_to(employee.id, status=ComplaintStatus.IN_PROGRESS)] == [claimed.id]
    assert len(repository.find_by_entity(entity.id, skip=1, limit=1)) == 1


def test_expired_and_unlocked_queries(repository, make_row, employee):
    expired = make_row(
        status=ComplaintStatus.IN_PROGRESS,
        assigned_to=employee.id,
        locked_at=NOW - timedelta(hours=9),
        lock_expires_at=NOW - timedelta(hours=1),
    )
    active = make_row(
        status=ComplaintStatus.IN_PROGRESS,
        assigned_to=employee.id,
        locked_at=NOW,
        lock_expires_at=NOW + timedelta(hours=8),
    )
    idle = make_row()

    assert [c.id for c in repository.find_expired_locks(NOW)] == [expired.id]
    assert {c.id for c in repository.find_unlocked(NOW)} == {expired.id, idle.id}
    assert active.id not in {c.id for c in repository.find_unlocked(NOW)}


def test_attachment_rows(attachments, session, make_row):
    complaint = make_row()
    rows = [
        {"file_name": "a.jpg", "file_path": "complaints/x/images/a.jpg", "file_type": "image",
         "mime_type": "image/jpeg", "file_size": 120},
        {"file_name": "b.jpg", "file_path": "complaints/x/images/b.jpg", "file_type": "image",
         "mime_type": "image/jpeg", "file_size": 2048},
        {"file_name": "r.pdf", "file_path": "complaints/x/pdfs/r.pdf", "file_type": "pdf",
         "mime_type": "application/pdf", "file_size": 4096},
    ]

    created = attachments.create_many_for_complaint(complaint.id, rows)
    session.commit()

    assert attachments.count_by_type(complaint.id, AttachmentType.IMAGE) == 2
    assert attachments.count_by_type(complaint.id, AttachmentType.PDF) == 1
    assert len(attachments.find_for_complaint(complaint.id)) == 3
    assert attachments.find_for_complaint(complaint.id, created[2].id).file_name == "r.pdf"
    assert attachments.find_for_complaint(complaint.id, "missing") is None
    assert created[1].human_readable_size == "2.0 KB"
