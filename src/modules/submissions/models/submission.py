from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base

class Submission(Base):
    __tablename__ = 'submissions'

    id = Column(Integer, primary_key=True)
    # One submission per intake session; the constraint is the final guard against double submits
    intake_session_id = Column(Integer, ForeignKey('intake_sessions.id'), unique=True, nullable=False)
    template_version_id = Column(Integer, ForeignKey('template_versions.id'), nullable=False)
    org_id = Column(Integer, ForeignKey('organizations.id'), nullable=False, index=True)
    response_data = Column(JSON, nullable=False)
    respondent_name = Column(String, nullable=True)
    respondent_email = Column(String, nullable=True)
    respondent_phone = Column(String, nullable=True)
    status = Column(String, nullable=False, default="submitted")
    created_at = Column(DateTime, default=datetime.utcnow)
    submitted_at = Column(DateTime, default=datetime.utcnow)

    intake_session = relationship("IntakeSession", back_populates="submission")
    template_version = relationship("TemplateVersion")
    organization = relationship("Organization")
    signature = relationship("Signature", back_populates="submission", uselist=False)
    pdf_artifact = relationship("PdfArtifact", back_populates="submission", uselist=False)
