import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ENABLE_STRUCTURED_LOGGING", "false")

from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gov_complaints.config.database import create_db_engine
from gov_complaints.core.events import EventBus
from gov_complaints.models import Base, Complaint, Entity, User
from gov_complaints.models.base.enums import ComplaintStatus, UserRole
from gov_complaints.services.complaint.complaint_lock_service import ComplaintLockService
from gov_complaints.services.complaint.complaint_service import ComplaintService, ComplaintServiceConfig
from gov_complaints.services.integrations.file_upload import IncomingFile
from gov_complaints.services.integrations.tracking_number import TrackingNumberGenerator

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class FakeUploader:
    """Keeps uploads in memory; can be told to fail on the n-th upload."""

    def __init__(self):
        self.uploaded: List[str] = []
        self.deleted: List[str] = []
        self.fail_on: int = 0
        self.error: Exception = OSError("disk full")

    def upload(self, file, destination_path, file_type) -> Dict[str, Any]:
        if self.fail_on and len(self.uploaded) + 1 == self.fail_on:
            raise self.error
        path = f"{destination_path}/{file.filename}"
        self.uploaded.append(path)
        return {
            "file_name": file.filename,
            "file_path": path,
            "file_type": file_type.value,
            "mime_type": file.content_type or "application/octet-stream",
            "file_size": file.size,
        }

    def delete(self, file_path: str) -> None:
        self.deleted.append(file_path)


class RecordingSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    def notify(self, recipient, notification):
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.sent.append((recipient.id, notification))


class Clock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def image(name: str = "photo.jpg") -> IncomingFile:
    return IncomingFile(filename=name, content=b"\xff\xd8\xff" + name.encode(), content_type="image/jpeg")


def pdf(name: str = "report.pdf") -> IncomingFile:
    return IncomingFile(filename=name, content=b"%PDF-1.4 " + name.encode(), content_type="application/pdf")


@pytest.fixture
def make_image():
    return image


@pytest.fixture
def make_pdf():
    return pdf


@pytest.fixture
def engine():
    engine = create_db_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def other_session(engine):
    """A second session on the same database, for concurrent-writer tests."""
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def entity(session):
    entity = Entity(name="Water Authority")
    session.add(entity)
    session.commit()
    return entity


@pytest.fixture
def other_entity(session):
    entity = Entity(name="Roads Department")
    session.add(entity)
    session.commit()
    return entity


def _user(session, email, role, entity_id=None):
    user = User(email=email, first_name=email.split("@")[0], role=role, entity_id=entity_id)
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def citizen(session):
    return _user(session, "citizen@example.com", UserRole.CITIZEN)


@pytest.fixture
def other_citizen(session):
    return _user(session, "neighbour@example.com", UserRole.CITIZEN)


@pytest.fixture
def employee(session, entity):
    return _user(session, "alice@water.gov", UserRole.EMPLOYEE, entity.id)


@pytest.fixture
def second_employee(session, entity):
    return _user(session, "bob@water.gov", UserRole.EMPLOYEE, entity.id)


@pytest.fixture
def outside_employee(session, other_entity):
    return _user(session, "carol@roads.gov", UserRole.EMPLOYEE, other_entity.id)


@pytest.fixture
def admin(session):
    return _user(session, "admin@gov.example", UserRole.ADMIN)


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def bus():
    bus = EventBus()
    bus.received = []
    for event_type in ("ComplaintCreatedEvent", "ComplaintStatusChangedEvent"):
        bus.subscribe(event_type, bus.received.append)
    return bus


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def config():
    return ComplaintServiceConfig()


@pytest.fixture
def service(session, config, uploader, sender, bus, clock):
    return ComplaintService(
        session,
        config=config,
        uploader=uploader,
        tracking_numbers=TrackingNumberGenerator(clock=clock),
        notification_sender=sender,
        events=bus,
        clock=clock,
    )


@pytest.fixture
def lock_service(session, clock):
    return ComplaintLockService(session, clock=clock)


@pytest.fixture
def complaint_data(entity):
    return {
        "entity_id": entity.id,
        "complaint_kind": "water_leak",
        "description": "Pipe burst on the corner, water running since morning",
        "location": "Main St 12",
    }


@pytest.fixture
def new_complaint(service, citizen, complaint_data) -> Complaint:
    return service.create_complaint(citizen, complaint_data)


@pytest.fixture
def accepted_complaint(service, new_complaint, employee) -> Complaint:
    complaint = service.accept_complaint(new_complaint, employee)
    assert complaint.status == ComplaintStatus.IN_PROGRESS
    return complaint
