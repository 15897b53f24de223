import json
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from modules.common.errors import BadRequestError
from modules.storage.services import BlobStore, get_blob_store
from modules.submissions.services.submission_service import SubmissionService

router = APIRouter(
    prefix="/submissions",
    tags=["submissions"]
)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return None
    first = forwarded.split(",")[0].strip()
    return first or None


@router.post("")
async def create_submission(
    request: Request,
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Public: the intake token in the body is the only credential."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequestError("Invalid payload.")

    submission = SubmissionService.submit(
        db,
        blob_store,
        payload,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return JSONResponse(
        status_code=201,
        content={"submissionId": submission.id, "message": "Form submitted successfully."},
    )
