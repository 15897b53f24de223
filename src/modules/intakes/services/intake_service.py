import secrets
from datetime import datetime, timedelta
from typing import Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from logging_config import get_logger
from modules.common.errors import ExpiredError, NotFoundError, is_unique_violation
from modules.common.timestamps import to_utc_iso
from modules.intakes.models import IntakeSession, IntakeStatus
from modules.templates.models import Template, TemplateStatus, TemplateVersion

logger = get_logger(__name__)

INTAKE_SESSION_TTL_DAYS = 30
TOKEN_BYTES = 24
MAX_TOKEN_ATTEMPTS = 3


def generate_token() -> str:
    # 24 random bytes -> 32 base64url characters, no padding
    return secrets.token_urlsafe(TOKEN_BYTES)


def extract_prefill(query_params: Mapping[str, str], schema: dict) -> dict:
    """Keeps only query parameters named after a field of the schema."""
    allowed_ids = {field.get("id") for field in schema.get("fields", [])}
    return {key: value for key, value in query_params.items() if key in allowed_ids}


class IntakeService:

    @staticmethod
    def create_session(session: Session, org_id: int, template_version_id: int) -> IntakeSession:
        """
        Mints a pending intake session bound to a published version of one of the org's templates.
        """
        version = (
            session.query(TemplateVersion)
            .join(Template, TemplateVersion.template_id == Template.id)
            .filter(
                TemplateVersion.id == template_version_id,
                TemplateVersion.version > 0,
                Template.org_id == org_id,
                Template.status == TemplateStatus.PUBLISHED,
            )
            .first()
        )
        if not version:
            raise NotFoundError("Template version not found or not published.")

        expires_at = datetime.utcnow() + timedelta(days=INTAKE_SESSION_TTL_DAYS)

        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            intake = IntakeSession(
                token=generate_token(),
                org_id=org_id,
                template_version_id=version.id,
                status=IntakeStatus.PENDING,
                expires_at=expires_at,
            )
            session.add(intake)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if not is_unique_violation(exc) or attempt == MAX_TOKEN_ATTEMPTS:
                    raise
                logger.warning("Intake token collision, generating a new one")
                continue
            session.refresh(intake)
            logger.info(f"Intake session {intake.id} created for template version {version.id}")
            return intake

    @staticmethod
    def get_session_by_token(session: Session, token: str) -> Optional[IntakeSession]:
        return session.query(IntakeSession).filter(IntakeSession.token == token).first()

    @staticmethod
    def get_by_token(session: Session, token: str, query_params: Optional[Mapping[str, str]] = None) -> dict:
        intake = IntakeService.get_session_by_token(session, token)
        if not intake:
            raise NotFoundError("Intake session not found.")

        if intake.is_expired():
            raise ExpiredError(
                "Intake session expired.",
                {"status": IntakeStatus.EXPIRED.value, "expiresAt": to_utc_iso(intake.expires_at)},
            )

        version = intake.template_version
        template = version.template
        if template.org_id != intake.org_id:
            logger.error(f"Intake session {intake.id} points to a template of another organization")
            raise NotFoundError("Intake session not valid for this organization.")

        schema = version.schema_json
        return {
            "status": intake.status.value,
            "expiresAt": to_utc_iso(intake.expires_at),
            "template": {
                "id": template.id,
                "version": version.version,
                "title": template.name,
                "schema": schema,
                "branding": schema.get("branding"),
            },
            "prefill": extract_prefill(query_params or {}, schema),
        }
