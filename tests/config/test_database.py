import pytest
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gov_complaints.config.database import create_db_engine
from gov_complaints.models import Base, Complaint, ComplaintAttachment, Entity, User
from gov_complaints.models.base.enums import AttachmentType, UserRole


@pytest.fixture
def sqlite_engine():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_sqlite_connections_enforce_foreign_keys(sqlite_engine):
    with sqlite_engine.connect() as conn:
        assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1


def test_attachments_are_removed_with_their_complaint(sqlite_engine):
    with Session(sqlite_engine) as session:
        entity = Entity(name="Water Authority")
        session.add(entity)
        session.flush()
        citizen = User(email="citizen@example.com", first_name="citizen", role=UserRole.CITIZEN)
        session.add(citizen)
        session.flush()
        complaint = Complaint(
            tracking_number="CMP-20261019-0000000001",
            user_id=citizen.id,
            entity_id=entity.id,
            complaint_kind="water",
            description="Burst pipe on Main Street",
            location="Main Street 4",
        )
        session.add(complaint)
        session.flush()
        session.add(ComplaintAttachment(
            complaint_id=complaint.id,
            file_name="photo.jpg",
            file_path="complaints/CMP-20261019-0000000001/photo.jpg",
            file_type=AttachmentType.IMAGE,
            mime_type="image/jpeg",
            file_size=128,
        ))
        session.commit()

        session.execute(delete(Complaint).where(Complaint.id == complaint.id))
        session.commit()

        assert session.scalar(select(func.count()).select_from(ComplaintAttachment)) == 0


def test_attachment_needs_an_existing_complaint(sqlite_engine):
    with Session(sqlite_engine) as session:
        session.add(ComplaintAttachment(
            complaint_id="missing",
            file_name="photo.jpg",
            file_path="complaints/missing/photo.jpg",
            file_type=AttachmentType.IMAGE,
            mime_type="image/jpeg",
            file_size=128,
        ))
        with pytest.raises(IntegrityError):
            session.commit()
