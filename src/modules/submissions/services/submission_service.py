from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from logging_config import audit_logger, get_logger
from modules.common.errors import (
    BadRequestError, ConflictError, ExpiredError, IntakeError, InternalError, NotFoundError,
    is_unique_violation,
)
from modules.common.timestamps import to_utc_iso
from modules.intakes.models import IntakeSession, IntakeStatus
from modules.storage.services import BlobStore, put_signature
from modules.submissions.models import Signature, Submission
from modules.submissions.services.field_sanitizer import find_missing, infer_respondent, sanitize_responses
from modules.submissions.services.signature_decoder import decode_signature_data_url

logger = get_logger(__name__)

DEFAULT_SIGNER_NAME = "Signer"
ALREADY_COMPLETED = "This intake session has already been completed."


def parse_signature_payload(value: Any) -> Optional[dict]:
    if not isinstance(value, dict):
        return None
    data_url = value.get("dataUrl")
    if not isinstance(data_url, str) or not data_url:
        return None
    signer_name = value.get("signerName")
    return {
        "data_url": data_url,
        "signer_name": signer_name.strip() if isinstance(signer_name, str) else None,
    }


class SubmissionService:

    @staticmethod
    def submit(
        session: Session,
        blob_store: BlobStore,
        payload: Any,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Submission:
        """
        Records the one submission of an intake session.

        Everything that can be rejected (payload shape, token, expiry, required
        answers, signature image) is checked before any write. The session is then
        re-read inside the transaction; the submission insert, signature upload,
        signature row and session completion commit together or not at all.
        """
        if not isinstance(payload, dict):
            raise BadRequestError("Invalid payload.")

        token = payload.get("token")
        if not isinstance(token, str) or not token:
            raise BadRequestError("Missing intake session token.")

        raw_responses = payload.get("responses")
        if not isinstance(raw_responses, dict):
            raise BadRequestError("Invalid responses.")

        signature_payload = parse_signature_payload(payload.get("signature"))

        intake = session.query(IntakeSession).filter(IntakeSession.token == token).first()
        if not intake:
            raise NotFoundError("Intake session not found.")

        if intake.is_expired():
            raise ExpiredError(
                "Intake session expired.",
                {"status": IntakeStatus.EXPIRED.value, "expiresAt": to_utc_iso(intake.expires_at)},
            )

        # Always the frozen schema of the bound version, never the live draft
        version = intake.template_version
        fields = version.schema_json.get("fields", [])

        sanitized = sanitize_responses(fields, raw_responses, has_signature=signature_payload is not None)
        missing = find_missing(fields, sanitized)
        if missing:
            raise BadRequestError("Please fill in all required fields.", {"missing": missing})

        decoded_signature = None
        if signature_payload:
            decoded_signature = decode_signature_data_url(signature_payload["data_url"])

        respondent = infer_respondent(fields, sanitized)
        intake_id = intake.id

        try:
            locked = (
                session.query(IntakeSession)
                .filter(IntakeSession.id == intake_id)
                .with_for_update()
                .populate_existing()
                .first()
            )
            if not locked:
                raise NotFoundError("Intake session not found.")
            if locked.status == IntakeStatus.COMPLETED:
                raise ConflictError(ALREADY_COMPLETED)

            now = datetime.utcnow()
            submission = Submission(
                intake_session_id=locked.id,
                template_version_id=locked.template_version_id,
                org_id=locked.org_id,
                status="submitted",
                response_data=sanitized,
                respondent_name=respondent["name"],
                respondent_email=respondent["email"],
                respondent_phone=respondent["phone"],
                created_at=now,
                submitted_at=now,
            )
            session.add(submission)
            try:
                session.flush()
            except IntegrityError as exc:
                if is_unique_violation(exc):
                    raise ConflictError(ALREADY_COMPLETED) from exc
                raise

            if decoded_signature:
                stored = put_signature(blob_store, submission.id, decoded_signature.data, decoded_signature.content_type)
                session.add(Signature(
                    submission_id=submission.id,
                    signer_name=signature_payload["signer_name"] or respondent["name"] or DEFAULT_SIGNER_NAME,
                    signed_at_utc=now,
                    ip_address=ip_address,
                    user_agent=user_agent,
                    blob_url=stored.url,
                ))

            locked.status = IntakeStatus.COMPLETED
            session.commit()
        except ConflictError as exc:
            session.rollback()
            audit_logger.log_submission_conflict(intake_id, exc.message)
            raise
        except IntakeError:
            session.rollback()
            raise
        except Exception as exc:
            session.rollback()
            logger.exception(f"Submission for intake session {intake_id} failed")
            raise InternalError("Unable to record the submission.") from exc

        audit_logger.log_submission_recorded(
            submission.id, intake_id, submission.org_id, has_signature=decoded_signature is not None
        )
        return submission
