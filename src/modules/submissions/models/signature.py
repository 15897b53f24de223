from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base

class Signature(Base):
    __tablename__ = 'signatures'

    id = Column(Integer, primary_key=True)
    submission_id = Column(Integer, ForeignKey('submissions.id'), unique=True, nullable=False)
    signer_name = Column(String, nullable=False)
    signed_at_utc = Column(DateTime, default=datetime.utcnow, nullable=False)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    blob_url = Column(String, nullable=False)

    submission = relationship("Submission", back_populates="signature")
