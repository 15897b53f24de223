from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from logging_config import get_logger
from modules.common.errors import ConflictError, InternalError, NotFoundError, is_unique_violation
from modules.common.timestamps import to_utc_iso
from modules.jobs import JobRunner
from modules.pdf.models import PdfArtifact, PdfStatus
from modules.pdf.services.pdf_workflow import upsert_artifact
from modules.submissions.models import Submission

logger = get_logger(__name__)


def artifact_state(artifact: PdfArtifact) -> dict:
    return {
        "status": artifact.status.value,
        "workflowRunId": artifact.workflow_run_id,
        "blobUrl": artifact.blob_url,
        "sizeBytes": artifact.size_bytes,
        "checksum": artifact.checksum,
        "error": artifact.error,
        "updatedAt": to_utc_iso(artifact.updated_at),
    }


class PdfArtifactService:
    """
    State machine of the PDF of a submission:
    not_started -> queued -> generating -> ready | failed, and failed -> queued on retry.
    """

    @staticmethod
    def get_owned_submission(session: Session, org_id: int, submission_id: int) -> Submission:
        submission = (
            session.query(Submission)
            .filter(Submission.id == submission_id, Submission.org_id == org_id)
            .first()
        )
        if not submission:
            raise NotFoundError("Submission not found.")
        return submission

    @staticmethod
    def get_artifact(session: Session, submission_id: int) -> Optional[PdfArtifact]:
        return (
            session.query(PdfArtifact)
            .filter(PdfArtifact.submission_id == submission_id)
            .populate_existing()
            .first()
        )

    @staticmethod
    def _enqueue(session: Session, submission_id: int, job_runner: JobRunner, workflow: Callable) -> str:
        """Starts the workflow for an artifact already committed as queued."""
        try:
            run = job_runner.start(workflow, [submission_id])
        except Exception as e:
            logger.exception(f"Unable to enqueue PDF generation for submission {submission_id}")
            session.rollback()
            upsert_artifact(session, submission_id, PdfStatus.FAILED, error=f"Unable to enqueue: {e}")
            session.commit()
            raise InternalError("Unable to enqueue PDF generation.") from e

        # Only the run id: an inline runner may already have moved the status on
        session.query(PdfArtifact).filter(PdfArtifact.submission_id == submission_id).update(
            {PdfArtifact.workflow_run_id: run.run_id}, synchronize_session=False
        )
        session.commit()
        logger.info(f"PDF generation for submission {submission_id} enqueued as run {run.run_id}")
        return run.run_id

    @staticmethod
    def generate(
        session: Session,
        org_id: int,
        submission_id: int,
        job_runner: JobRunner,
        workflow: Callable,
    ) -> tuple[dict, bool]:
        """
        Returns (state, enqueued). Existing ready, queued or generating artifacts are
        returned as they are; a failed one must go through retry.
        """
        PdfArtifactService.get_owned_submission(session, org_id, submission_id)
        artifact = PdfArtifactService.get_artifact(session, submission_id)

        if artifact is None:
            session.add(PdfArtifact(
                submission_id=submission_id,
                status=PdfStatus.QUEUED,
                updated_at=datetime.utcnow(),
            ))
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if not is_unique_violation(exc):
                    raise
                # Another request enqueued first
                artifact = PdfArtifactService.get_artifact(session, submission_id)
            else:
                run_id = PdfArtifactService._enqueue(session, submission_id, job_runner, workflow)
                return {"status": PdfStatus.QUEUED.value, "workflowRunId": run_id}, True

        if artifact.status == PdfStatus.FAILED:
            raise ConflictError(
                artifact.error or "PDF generation failed.",
                {
                    "status": artifact.status.value,
                    "workflowRunId": artifact.workflow_run_id,
                    "message": "Use the retry action to start a new workflow run.",
                },
            )
        return artifact_state(artifact), False

    @staticmethod
    def retry(
        session: Session,
        org_id: int,
        submission_id: int,
        job_runner: JobRunner,
        workflow: Callable,
    ) -> dict:
        PdfArtifactService.get_owned_submission(session, org_id, submission_id)
        artifact = PdfArtifactService.get_artifact(session, submission_id)
        if artifact is None:
            raise NotFoundError("PDF artifact not found for this submission.")

        # Compare-and-set so two retries cannot both enqueue
        updated = (
            session.query(PdfArtifact)
            .filter(PdfArtifact.submission_id == submission_id, PdfArtifact.status == PdfStatus.FAILED)
            .update(
                {
                    PdfArtifact.status: PdfStatus.QUEUED,
                    PdfArtifact.error: None,
                    PdfArtifact.workflow_run_id: None,
                    PdfArtifact.updated_at: datetime.utcnow(),
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            session.rollback()
            raise ConflictError(
                "Retry is only available for failed generations.",
                {"status": artifact.status.value},
            )
        session.commit()

        run_id = PdfArtifactService._enqueue(session, submission_id, job_runner, workflow)
        return {"status": PdfStatus.QUEUED.value, "workflowRunId": run_id}

    @staticmethod
    def status(session: Session, org_id: int, submission_id: int) -> dict:
        PdfArtifactService.get_owned_submission(session, org_id, submission_id)
        artifact = PdfArtifactService.get_artifact(session, submission_id)
        if artifact is None:
            return {"status": PdfStatus.NOT_STARTED.value}
        return artifact_state(artifact)

    @staticmethod
    def download_url(session: Session, org_id: int, submission_id: int) -> str:
        PdfArtifactService.get_owned_submission(session, org_id, submission_id)
        artifact = PdfArtifactService.get_artifact(session, submission_id)
        if artifact is None:
            raise NotFoundError("PDF artifact not found.")
        if artifact.status != PdfStatus.READY or not artifact.blob_url:
            raise ConflictError("PDF not available yet.", {"status": artifact.status.value})
        return artifact.blob_url
