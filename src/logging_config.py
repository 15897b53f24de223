"""Logging configuration for the application."""

from datetime import datetime, timezone
import json
import logging
import sys

from config import settings


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging() -> None:
    """Configure the root logger based on the environment."""
    log_level = logging.INFO
    if settings.ENVIRONMENT == "development":
        log_level = logging.DEBUG
    elif settings.ENVIRONMENT == "production":
        log_level = logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if settings.ENVIRONMENT == "production":
        console_handler.setFormatter(JSONFormatter())
    else:
        console_handler.setFormatter(StandardFormatter())
    root_logger.addHandler(console_handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class AuditLogger:
    """Structured events for the intake lifecycle."""

    def __init__(self) -> None:
        self.logger = get_logger("audit")

    def log_submission_recorded(
        self,
        submission_id: int,
        intake_session_id: int,
        org_id: int,
        has_signature: bool,
    ) -> None:
        self.logger.info(
            f"Submission recorded: {submission_id}",
            extra={
                "extra_fields": {
                    "event_type": "submission_recorded",
                    "submission_id": submission_id,
                    "intake_session_id": intake_session_id,
                    "org_id": org_id,
                    "has_signature": has_signature,
                }
            },
        )

    def log_submission_conflict(self, intake_session_id: int, reason: str) -> None:
        self.logger.warning(
            f"Submission rejected for session {intake_session_id}: {reason}",
            extra={
                "extra_fields": {
                    "event_type": "submission_conflict",
                    "intake_session_id": intake_session_id,
                    "reason": reason,
                }
            },
        )

    def log_access_denied(self, reason: str, user_ref: str | None = None, org_ref: str | None = None) -> None:
        self.logger.warning(
            f"Staff access denied: {reason}",
            extra={
                "extra_fields": {
                    "event_type": "access_denied",
                    "user_ref": user_ref,
                    "org_ref": org_ref,
                    "reason": reason,
                }
            },
        )


audit_logger = AuditLogger()
