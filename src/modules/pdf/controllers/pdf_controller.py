from typing import Callable

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.dependencies import require_permission
from modules.auth.schemas import StaffContext
from modules.jobs import JobRunner, get_job_runner
from modules.pdf.services.pdf_artifact_service import PdfArtifactService
from modules.pdf.services.pdf_workflow import get_pdf_workflow

router = APIRouter(
    prefix="/pdf",
    tags=["pdf"]
)


@router.post("/{submission_id}/generate")
def generate_pdf(
    submission_id: int,
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("submissions")),
    job_runner: JobRunner = Depends(get_job_runner),
    workflow: Callable = Depends(get_pdf_workflow),
):
    """Enqueues generation (202) or returns the current state (200)."""
    state, enqueued = PdfArtifactService.generate(db, staff.org_id, submission_id, job_runner, workflow)
    return JSONResponse(status_code=202 if enqueued else 200, content=state)


@router.post("/{submission_id}/retry")
def retry_pdf(
    submission_id: int,
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("submissions")),
    job_runner: JobRunner = Depends(get_job_runner),
    workflow: Callable = Depends(get_pdf_workflow),
):
    state = PdfArtifactService.retry(db, staff.org_id, submission_id, job_runner, workflow)
    return JSONResponse(status_code=202, content=state)


@router.get("/{submission_id}/status")
def pdf_status(
    submission_id: int,
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("submissions")),
):
    return PdfArtifactService.status(db, staff.org_id, submission_id)


@router.get("/{submission_id}/download")
def download_pdf(
    submission_id: int,
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("submissions")),
):
    # The PDF is served by the blob store, never proxied
    return RedirectResponse(PdfArtifactService.download_url(db, staff.org_id, submission_id))
