import base64
import copy

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import create_tables  # noqa: F401  registers every model with Base
from database import Base, get_db
from modules.auth.models import Membership, MemberRole, Organization, User
from modules.auth.services.auth_service import AuthService
from modules.intakes.services.intake_service import IntakeService
from modules.jobs import InlineJobRunner, get_job_runner
from modules.pdf.services.pdf_workflow import PdfGenerationWorkflow, get_pdf_workflow
from modules.storage.services import BlobStore, BlobStoreError, StoredBlob, get_blob_store
from modules.templates.services.template_service import TemplateService

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24

CONSENT_TEMPLATE = {
    "name": "Consent",
    "fields": [
        {"id": "name", "type": "text", "required": True, "label": "Name"},
    ],
}

SIGNED_TEMPLATE = {
    "name": "Tattoo consent",
    "locale": "it-IT",
    "fields": [
        {"id": "fullName", "type": "text", "label": "Full name", "required": True},
        {"id": "email", "type": "email", "label": "Email"},
        {"id": "phone", "type": "phone", "label": "Phone"},
        {"id": "birthDate", "type": "date", "label": "Date of birth"},
        {"id": "info", "type": "content", "label": "Info", "content": "Read carefully."},
        {
            "id": "treatment",
            "type": "radio",
            "label": "Treatment",
            "options": [{"id": "tattoo", "label": "Tattoo"}, {"id": "piercing", "label": "Piercing"}],
        },
        {"id": "privacy", "type": "checkbox", "label": "Privacy", "required": True},
        {"id": "signature", "type": "signature", "label": "Signature", "required": True},
    ],
}


class InMemoryBlobStore(BlobStore):

    def __init__(self):
        self.blobs = {}

    def put(self, key, data, content_type):
        self.blobs[key] = (data, content_type)
        return StoredBlob(key=key, url=f"https://blobs.test/{key}")


class FailingBlobStore(BlobStore):

    def put(self, key, data, content_type):
        raise BlobStoreError(f"Unable to upload blob {key}")


def png_data_url(data: bytes = PNG_BYTES, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode()}"


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture
def job_runner():
    return InlineJobRunner()


@pytest.fixture
def org(db_session):
    org = Organization(external_id="org_main", name="Main Studio")
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture
def other_org(db_session):
    org = Organization(external_id="org_other", name="Other Studio")
    db_session.add(org)
    db_session.commit()
    return org


def add_member(session, org, external_id, role):
    user = User(external_id=external_id, name=external_id, email=f"{external_id}@example.com", is_active=True)
    session.add(user)
    session.flush()
    session.add(Membership(user_id=user.id, org_id=org.id, role=role))
    session.commit()
    return user


@pytest.fixture
def staff_user(db_session, org):
    return add_member(db_session, org, "user_staff", MemberRole.STAFF)


@pytest.fixture
def staff_headers(staff_user, org):
    token = AuthService.create_identity_token(staff_user.external_id, org.external_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_staff_headers(db_session, other_org):
    user = add_member(db_session, other_org, "user_other", MemberRole.ADMIN)
    token = AuthService.create_identity_token(user.external_id, other_org.external_id)
    return {"Authorization": f"Bearer {token}"}


def publish_template(session, org_id, payload=None):
    payload = copy.deepcopy(payload or CONSENT_TEMPLATE)
    created = TemplateService.save_draft(session, org_id, payload)
    version, _ = TemplateService.publish(session, org_id, created["id"], payload)
    return version


@pytest.fixture
def consent_version(db_session, org):
    return publish_template(db_session, org.id)


@pytest.fixture
def signed_version(db_session, org):
    return publish_template(db_session, org.id, SIGNED_TEMPLATE)


@pytest.fixture
def consent_intake(db_session, org, consent_version):
    return IntakeService.create_session(db_session, org.id, consent_version.id)


@pytest.fixture
def signed_intake(db_session, org, signed_version):
    return IntakeService.create_session(db_session, org.id, signed_version.id)


@pytest.fixture
def client(blob_store, job_runner):
    from main import app

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    workflow = PdfGenerationWorkflow(TestingSessionLocal, blob_store)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_job_runner] = lambda: job_runner
    app.dependency_overrides[get_pdf_workflow] = lambda: workflow

    yield TestClient(app, raise_server_exceptions=False)

    app.dependency_overrides.clear()
