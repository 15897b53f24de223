from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.dependencies import require_permission
from modules.auth.schemas import StaffContext
from modules.common.errors import BadRequestError, is_identifier
from modules.common.timestamps import to_utc_iso
from modules.templates.models import TemplateStatus
from modules.templates.services.template_service import TemplateService

router = APIRouter(
    prefix="/templates",
    tags=["templates"]
)


def _template_body(body: Optional[dict]) -> Any:
    if not isinstance(body, dict) or not body.get("template"):
        raise BadRequestError("Missing template payload.")
    return body["template"]


@router.post("")
def save_draft(
    body: Optional[dict] = Body(default=None),
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("templates")),
):
    """
    Saves the draft of a template. Creates the template when `templateId` is absent (201),
    otherwise updates it (200).
    """
    raw_template = _template_body(body)
    template_id = body.get("templateId")
    if template_id is not None and not is_identifier(template_id):
        raise BadRequestError("templateId must be an integer.")
    result = TemplateService.save_draft(db, staff.org_id, raw_template, template_id)
    return JSONResponse(status_code=200 if template_id is not None else 201, content=result)


@router.get("")
def list_templates(
    status: Optional[str] = Query(default=None),
    include: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("templates")),
):
    # Unknown status values are ignored rather than rejected
    status_filter = None
    if status in {s.value for s in TemplateStatus}:
        status_filter = TemplateStatus(status)
    templates = TemplateService.list_templates(
        db, staff.org_id, status=status_filter, include_versions=include == "versions"
    )
    return {"templates": templates}


@router.post("/publish/{template_id}")
def publish_template(
    template_id: int,
    body: Optional[dict] = Body(default=None),
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("templates")),
):
    raw_template = _template_body(body)
    version, created = TemplateService.publish(db, staff.org_id, template_id, raw_template)
    return JSONResponse(
        status_code=201 if created else 200,
        content={
            "id": version.id,
            "version": version.version,
            "publishedAt": to_utc_iso(version.published_at),
        },
    )


@router.post("/{template_id}/archive")
def archive_template(
    template_id: int,
    db: Session = Depends(get_db),
    staff: StaffContext = Depends(require_permission("templates")),
):
    template = TemplateService.archive(db, staff.org_id, template_id)
    return {"id": template.id, "status": template.status.value}
