from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from database import Base

class IntakeStatus(PyEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    # Derived from expires_at, never stored
    EXPIRED = "expired"

class IntakeSession(Base):
    __tablename__ = 'intake_sessions'

    id = Column(Integer, primary_key=True)
    token = Column(String(64), unique=True, nullable=False, index=True)
    org_id = Column(Integer, ForeignKey('organizations.id'), nullable=False, index=True)
    template_version_id = Column(Integer, ForeignKey('template_versions.id'), nullable=False)
    status = Column(
        Enum(IntakeStatus, name="intake_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=IntakeStatus.PENDING,
    )
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    template_version = relationship("TemplateVersion")
    submission = relationship("Submission", back_populates="intake_session", uselist=False)

    def is_expired(self, now: datetime = None) -> bool:
        return self.expires_at <= (now or datetime.utcnow())
