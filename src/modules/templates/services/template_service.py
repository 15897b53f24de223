from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import upsert
from logging_config import get_logger
from modules.common.errors import ConflictError, NotFoundError, ValidationFailedError, is_unique_violation
from modules.templates.models import Template, TemplateDraft, TemplateStatus, TemplateVersion
from modules.templates.schemas import TemplatePayload
from modules.common.timestamps import to_utc_iso
from modules.templates.services.checksum import hash_payload_sha256

logger = get_logger(__name__)


def parse_template_payload(raw: Any) -> TemplatePayload:
    """Validates a raw template payload, raising ValidationFailedError with every issue."""
    try:
        return TemplatePayload.model_validate(raw)
    except ValidationError as exc:
        issues = [
            {
                "path": ".".join(str(part) for part in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        raise ValidationFailedError("Invalid template payload.", issues) from exc


class TemplateService:

    @staticmethod
    def get_owned_template(session: Session, org_id: int, template_id: int) -> Template:
        template = (
            session.query(Template)
            .filter(Template.id == template_id, Template.org_id == org_id)
            .first()
        )
        if not template:
            raise NotFoundError("Template not found.")
        return template

    @staticmethod
    def latest_published_version(session: Session, template_id: int) -> Optional[TemplateVersion]:
        return (
            session.query(TemplateVersion)
            .filter(TemplateVersion.template_id == template_id)
            .order_by(TemplateVersion.version.desc())
            .first()
        )

    @staticmethod
    def save_draft(session: Session, org_id: int, raw_payload: Any, template_id: Optional[int] = None) -> dict:
        """
        Creates a template (when template_id is None) or updates an owned one,
        and upserts its single draft.
        """
        payload = parse_template_payload(raw_payload)
        schema_json = payload.to_schema_json()
        checksum = hash_payload_sha256(schema_json)
        now = datetime.utcnow()

        if template_id is not None:
            template = TemplateService.get_owned_template(session, org_id, template_id)
            template.name = payload.name
            template.status = TemplateStatus.DRAFT
            template.updated_at = now
        else:
            template = Template(org_id=org_id, name=payload.name, status=TemplateStatus.DRAFT, updated_at=now)
            session.add(template)
        session.flush()

        upsert(
            session,
            TemplateDraft,
            values={
                "template_id": template.id,
                "schema_json": schema_json,
                "checksum": checksum,
                "updated_at": now,
            },
            index_elements=["template_id"],
            update_fields=["schema_json", "checksum", "updated_at"],
        )
        session.commit()

        latest = TemplateService.latest_published_version(session, template.id)
        result = {"id": template.id, "status": template.status.value}
        if latest:
            result["latestPublishedVersion"] = latest.version
        return result

    @staticmethod
    def publish(session: Session, org_id: int, template_id: int, raw_payload: Any) -> tuple[TemplateVersion, bool]:
        """
        Publishes the payload as the next version.

        Returns (version, created). When the checksum equals the latest
        published version's, nothing is inserted and that version is returned.
        """
        payload = parse_template_payload(raw_payload)
        template = TemplateService.get_owned_template(session, org_id, template_id)

        schema_json = payload.to_schema_json()
        checksum = hash_payload_sha256(schema_json)
        now = datetime.utcnow()

        latest = TemplateService.latest_published_version(session, template.id)
        if latest and latest.checksum == checksum:
            if template.status != TemplateStatus.PUBLISHED:
                template.status = TemplateStatus.PUBLISHED
                template.updated_at = now
                session.commit()
            logger.info(f"Template {template.id} publish is a no-op, version {latest.version} unchanged")
            return latest, False

        next_version = (latest.version if latest else 0) + 1
        version = TemplateVersion(
            template_id=template.id,
            version=next_version,
            schema_json=schema_json,
            checksum=checksum,
            published_at=now,
        )
        session.add(version)
        template.status = TemplateStatus.PUBLISHED
        template.name = payload.name
        template.updated_at = now

        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            if is_unique_violation(exc):
                raise ConflictError("Template was published concurrently, retry.") from exc
            raise

        logger.info(f"Template {template.id} published as version {next_version}")
        return version, True

    @staticmethod
    def archive(session: Session, org_id: int, template_id: int) -> Template:
        template = TemplateService.get_owned_template(session, org_id, template_id)
        template.status = TemplateStatus.ARCHIVED
        template.updated_at = datetime.utcnow()
        session.commit()
        return template

    @staticmethod
    def list_templates(
        session: Session,
        org_id: int,
        status: Optional[TemplateStatus] = None,
        include_versions: bool = False,
    ) -> list[dict]:
        query = session.query(Template).filter(Template.org_id == org_id)
        if status is not None:
            query = query.filter(Template.status == status)
        templates = query.order_by(Template.updated_at.desc()).all()

        results = []
        for template in templates:
            versions = list(template.versions)
            latest = versions[0] if versions else None
            draft = template.draft

            item = {
                "id": template.id,
                "name": template.name,
                "status": template.status.value,
                "createdAt": to_utc_iso(template.created_at),
                "updatedAt": to_utc_iso(template.updated_at),
                "draft": {
                    "id": draft.id,
                    "checksum": draft.checksum,
                    "updatedAt": to_utc_iso(draft.updated_at),
                    "schema": draft.schema_json,
                } if draft else None,
                "latestPublished": _version_dict(latest) if latest else None,
            }
            if include_versions:
                item["versions"] = [_version_dict(version) for version in versions]
            results.append(item)
        return results


def _version_dict(version: TemplateVersion) -> dict:
    return {
        "id": version.id,
        "version": version.version,
        "checksum": version.checksum,
        "publishedAt": to_utc_iso(version.published_at),
        "schema": version.schema_json,
    }
