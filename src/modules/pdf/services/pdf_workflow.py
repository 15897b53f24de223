import hashlib
import io
from datetime import datetime
from typing import Callable, Optional

from PyPDF2 import PdfReader
from sqlalchemy.orm import Session

from database import SessionLocal, upsert
from logging_config import get_logger
from modules.pdf.models import PdfArtifact, PdfStatus
from modules.pdf.services.pdf_renderer import SubmissionPdfRenderer
from modules.storage.services import BlobStore, get_blob_store, put_pdf
from modules.submissions.models import Submission

logger = get_logger(__name__)

EXPECTED_MIN_PAGES = 2


def upsert_artifact(session: Session, submission_id: int, status: PdfStatus, **values) -> None:
    """Inserts or overwrites the artifact row of a submission."""
    row = {"submission_id": submission_id, "status": status, "updated_at": datetime.utcnow(), **values}
    upsert(
        session,
        PdfArtifact,
        values=row,
        index_elements=["submission_id"],
        update_fields=[key for key in row if key != "submission_id"],
    )


def verify_pdf(data: bytes) -> int:
    """Re-opens the rendered bytes and returns the page count."""
    reader = PdfReader(io.BytesIO(data))
    pages = len(reader.pages)
    if pages < EXPECTED_MIN_PAGES:
        raise ValueError(f"Rendered PDF has {pages} page(s), expected at least {EXPECTED_MIN_PAGES}")
    return pages


class PdfGenerationWorkflow:
    """
    Out-of-band PDF generation for one submission.

    Steps: mark generating, load the submission graph, render, verify, upload,
    mark ready with URL, size and sha256. Any failure marks the artifact failed
    with the error message and is then re-raised to the job runner.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        blob_store: Optional[BlobStore] = None,
        renderer: Optional[SubmissionPdfRenderer] = None,
    ):
        self.session_factory = session_factory
        self.blob_store = blob_store
        self.renderer = renderer

    def __call__(self, submission_id: int) -> str:
        with self.session_factory() as session:
            try:
                upsert_artifact(session, submission_id, PdfStatus.GENERATING)
                session.commit()

                submission = session.get(Submission, submission_id)
                if not submission:
                    raise LookupError(f"Submission not found: {submission_id}")
                if not submission.template_version or not submission.template_version.template:
                    raise LookupError(f"Template data is missing for submission {submission_id}")
                if not submission.organization:
                    raise LookupError(f"Organization data is missing for submission {submission_id}")

                renderer = self.renderer or SubmissionPdfRenderer()
                data = renderer.render(submission)
                verify_pdf(data)

                stored = put_pdf(self.blob_store or get_blob_store(), submission_id, data)
                upsert_artifact(
                    session,
                    submission_id,
                    PdfStatus.READY,
                    blob_url=stored.url,
                    size_bytes=len(data),
                    checksum=hashlib.sha256(data).hexdigest(),
                    error=None,
                )
                session.commit()
            except Exception as e:
                session.rollback()
                logger.error(f"PDF generation failed for submission {submission_id}: {e}")
                upsert_artifact(session, submission_id, PdfStatus.FAILED, error=str(e) or type(e).__name__)
                session.commit()
                raise

        logger.info(f"PDF ready for submission {submission_id} ({len(data)} bytes)")
        return "ok"


generate_pdf_workflow = PdfGenerationWorkflow()


def get_pdf_workflow() -> Callable[[int], str]:
    return generate_pdf_workflow
