from datetime import datetime, timedelta

import pytest

from modules.common.errors import ConflictError, InternalError, NotFoundError
from modules.jobs import InlineJobRunner, JobRun, JobRunner
from modules.pdf.models import PdfArtifact, PdfStatus
from modules.pdf.services.pdf_artifact_service import PdfArtifactService
from modules.pdf.services.pdf_workflow import PdfGenerationWorkflow
from modules.pdf.services.stale_artifacts import STALE_AFTER_MINUTES, fail_stale_artifacts
from modules.submissions.services.submission_service import SubmissionService
from conftest import FailingBlobStore, TestingSessionLocal


class RecordingJobRunner(JobRunner):
    """Accepts jobs without running them."""

    def __init__(self):
        self.started = []

    def start(self, workflow, args=()):
        self.started.append((workflow, list(args)))
        return JobRun(run_id=f"run-{len(self.started)}")


class BrokenJobRunner(JobRunner):

    def start(self, workflow, args=()):
        raise RuntimeError("runner offline")


class FailingRenderer:

    def render(self, submission):
        raise RuntimeError("renderer exploded")


@pytest.fixture
def submission(db_session, blob_store, consent_intake):
    return SubmissionService.submit(db_session, blob_store, {"token": consent_intake.token, "responses": {"name": "Mario"}})


def artifact_of(session, submission_id):
    session.expire_all()
    return session.query(PdfArtifact).filter(PdfArtifact.submission_id == submission_id).first()


def test_status_without_artifact_is_not_started(db_session, org, submission):
    assert PdfArtifactService.status(db_session, org.id, submission.id) == {"status": "not_started"}


def test_generate_enqueues_once(db_session, org, submission):
    runner = RecordingJobRunner()
    workflow = PdfGenerationWorkflow(TestingSessionLocal)

    state, enqueued = PdfArtifactService.generate(db_session, org.id, submission.id, runner, workflow)
    assert enqueued is True
    assert state == {"status": "queued", "workflowRunId": "run-1"}

    state, enqueued = PdfArtifactService.generate(db_session, org.id, submission.id, runner, workflow)
    assert enqueued is False
    assert state["status"] == "queued"
    assert state["workflowRunId"] == "run-1"
    assert len(runner.started) == 1


def test_inline_generation_reaches_ready(db_session, org, submission, blob_store):
    workflow = PdfGenerationWorkflow(TestingSessionLocal, blob_store)
    state, enqueued = PdfArtifactService.generate(db_session, org.id, submission.id, InlineJobRunner(), workflow)
    assert enqueued is True

    artifact = artifact_of(db_session, submission.id)
    assert artifact.status == PdfStatus.READY
    assert artifact.workflow_run_id == state["workflowRunId"]
    assert artifact.blob_url == f"https://blobs.test/pdfs/{submission.id}.pdf"
    data, content_type = blob_store.blobs[f"pdfs/{submission.id}.pdf"]
    assert content_type == "application/pdf"
    assert artifact.size_bytes == len(data)
    assert len(artifact.checksum) == 64

    state, enqueued = PdfArtifactService.generate(
        db_session, org.id, submission.id, InlineJobRunner(), workflow
    )
    assert enqueued is False
    assert state["status"] == "ready"


def test_workflow_failure_leaves_failed_state(db_session, org, submission):
    runner = InlineJobRunner()
    workflow = PdfGenerationWorkflow(TestingSessionLocal, FailingBlobStore())
    PdfArtifactService.generate(db_session, org.id, submission.id, runner, workflow)

    artifact = artifact_of(db_session, submission.id)
    assert artifact.status == PdfStatus.FAILED
    assert "Unable to upload blob" in artifact.error
    assert runner.runs[0][1] is not None


def test_workflow_reraises_after_recording_failure(db_session, submission):
    workflow = PdfGenerationWorkflow(TestingSessionLocal, renderer=FailingRenderer())
    with pytest.raises(RuntimeError, match="renderer exploded"):
        workflow(submission.id)
    assert artifact_of(db_session, submission.id).status == PdfStatus.FAILED


def test_generate_on_failed_artifact_asks_for_retry(db_session, org, submission):
    workflow = PdfGenerationWorkflow(TestingSessionLocal, FailingBlobStore())
    PdfArtifactService.generate(db_session, org.id, submission.id, InlineJobRunner(), workflow)

    with pytest.raises(ConflictError) as excinfo:
        PdfArtifactService.generate(db_session, org.id, submission.id, RecordingJobRunner(), workflow)
    assert excinfo.value.details["status"] == "failed"
    assert "retry" in excinfo.value.details["message"]


def test_retry_only_from_failed(db_session, org, submission, blob_store):
    failing = PdfGenerationWorkflow(TestingSessionLocal, FailingBlobStore())
    PdfArtifactService.generate(db_session, org.id, submission.id, InlineJobRunner(), failing)

    runner = RecordingJobRunner()
    state = PdfArtifactService.retry(db_session, org.id, submission.id, runner, failing)
    assert state == {"status": "queued", "workflowRunId": "run-1"}
    artifact = artifact_of(db_session, submission.id)
    assert artifact.status == PdfStatus.QUEUED
    assert artifact.error is None

    with pytest.raises(ConflictError):
        PdfArtifactService.retry(db_session, org.id, submission.id, runner, failing)
    assert len(runner.started) == 1


def test_retry_on_ready_conflicts(db_session, org, submission, blob_store):
    workflow = PdfGenerationWorkflow(TestingSessionLocal, blob_store)
    PdfArtifactService.generate(db_session, org.id, submission.id, InlineJobRunner(), workflow)

    with pytest.raises(ConflictError) as excinfo:
        PdfArtifactService.retry(db_session, org.id, submission.id, RecordingJobRunner(), workflow)
    assert excinfo.value.details["status"] == "ready"


def test_retry_without_artifact_is_not_found(db_session, org, submission):
    with pytest.raises(NotFoundError):
        PdfArtifactService.retry(db_session, org.id, submission.id, RecordingJobRunner(), None)


def test_enqueue_failure_marks_artifact_failed(db_session, org, submission):
    with pytest.raises(InternalError):
        PdfArtifactService.generate(db_session, org.id, submission.id, BrokenJobRunner(), None)
    assert artifact_of(db_session, submission.id).status == PdfStatus.FAILED


def test_download_requires_ready(db_session, org, submission, blob_store):
    with pytest.raises(NotFoundError):
        PdfArtifactService.download_url(db_session, org.id, submission.id)

    PdfArtifactService.generate(db_session, org.id, submission.id, RecordingJobRunner(), None)
    with pytest.raises(ConflictError):
        PdfArtifactService.download_url(db_session, org.id, submission.id)

    PdfGenerationWorkflow(TestingSessionLocal, blob_store)(submission.id)
    url = PdfArtifactService.download_url(db_session, org.id, submission.id)
    assert url == f"https://blobs.test/pdfs/{submission.id}.pdf"


def test_other_org_cannot_see_submission(db_session, other_org, submission):
    with pytest.raises(NotFoundError):
        PdfArtifactService.status(db_session, other_org.id, submission.id)
    with pytest.raises(NotFoundError):
        PdfArtifactService.generate(db_session, other_org.id, submission.id, RecordingJobRunner(), None)


def test_stale_artifacts_become_failed(db_session, org, submission):
    PdfArtifactService.generate(db_session, org.id, submission.id, RecordingJobRunner(), None)

    assert fail_stale_artifacts(db_session) == 0
    later = datetime.utcnow() + timedelta(minutes=STALE_AFTER_MINUTES + 1)
    assert fail_stale_artifacts(db_session, now=later) == 1

    artifact = artifact_of(db_session, submission.id)
    assert artifact.status == PdfStatus.FAILED
    assert artifact.error
