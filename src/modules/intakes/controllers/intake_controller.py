from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.dependencies import require_permission
from modules.auth.schemas import StaffContext
from modules.common.errors import BadRequestError, is_identifier
from modules.common.timestamps import to_utc_iso
from modules.intakes.services.intake_service import IntakeService

router = APIRouter(
    prefix="/intakes",
    tags=["intakes"]
)


@router.post("")
def create_intake(
    body: Optional[dict] = Body(default=None),
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("intakes")),
):
    if not isinstance(body, dict) or not body.get("templateVersionId"):
        raise BadRequestError("templateVersionId is required.")
    if not is_identifier(body["templateVersionId"]):
        raise BadRequestError("templateVersionId must be an integer.")

    intake = IntakeService.create_session(db, staff.org_id, body["templateVersionId"])
    return JSONResponse(
        status_code=201,
        content={"token": intake.token, "expiresAt": to_utc_iso(intake.expires_at)},
    )


@router.get("/{token}")
def get_intake(token: str, request: Request, db: Session = Depends(get_db)):
    """Public: anyone holding the token can read the frozen form."""
    return IntakeService.get_by_token(db, token, dict(request.query_params))
