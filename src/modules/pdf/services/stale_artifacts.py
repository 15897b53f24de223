from datetime import datetime, timedelta
from sqlalchemy.orm import Session

from logging_config import get_logger
from modules.pdf.models import PdfArtifact, PdfStatus

logger = get_logger(__name__)

STALE_AFTER_MINUTES = 30
STALE_ERROR = "PDF generation did not complete in time."

def fail_stale_artifacts(session: Session, now: datetime = None) -> int:
    """
    Marks queued or generating artifacts untouched for STALE_AFTER_MINUTES as failed,
    so a run lost with its worker can be retried.
    """
    cutoff = (now or datetime.utcnow()) - timedelta(minutes=STALE_AFTER_MINUTES)

    count = session.query(PdfArtifact).filter(
        PdfArtifact.status.in_([PdfStatus.QUEUED, PdfStatus.GENERATING]),
        PdfArtifact.updated_at <= cutoff
    ).update(
        {
            PdfArtifact.status: PdfStatus.FAILED,
            PdfArtifact.error: STALE_ERROR,
            PdfArtifact.updated_at: now or datetime.utcnow(),
        },
        synchronize_session=False,
    )
    session.commit()

    if count:
        logger.warning(f"Marked {count} stale PDF artifact(s) as failed")
    return count
