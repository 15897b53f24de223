from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from database import Base

class TemplateStatus(PyEnum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

class Template(Base):
    __tablename__ = 'templates'

    id = Column(Integer, primary_key=True)
    org_id = Column(Integer, ForeignKey('organizations.id'), nullable=False, index=True)
    name = Column(String, nullable=False)
    status = Column(
        Enum(TemplateStatus, name="template_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TemplateStatus.DRAFT,
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    organization = relationship("Organization")
    draft = relationship("TemplateDraft", back_populates="template", uselist=False, cascade="all, delete-orphan")
    versions = relationship(
        "TemplateVersion",
        back_populates="template",
        order_by="TemplateVersion.version.desc()",
        cascade="all, delete-orphan",
    )
