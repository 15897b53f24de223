from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from database import Base

class PdfStatus(PyEnum):
    # Never stored: reported when a submission has no artifact row yet
    NOT_STARTED = "not_started"
    QUEUED = "queued"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"

class PdfArtifact(Base):
    """Generated PDF of one submission, overwritten in place as the job progresses."""

    __tablename__ = 'pdf_artifacts'

    id = Column(Integer, primary_key=True)
    submission_id = Column(Integer, ForeignKey('submissions.id'), unique=True, nullable=False)
    status = Column(
        Enum(PdfStatus, name="pdf_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=PdfStatus.QUEUED,
    )
    blob_url = Column(String, nullable=True)
    size_bytes = Column(Integer, nullable=True)
    checksum = Column(String(64), nullable=True)
    error = Column(Text, nullable=True)
    workflow_run_id = Column(String, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    submission = relationship("Submission", back_populates="pdf_artifact")
