from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, UniqueConstraint, CheckConstraint, event
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base


class ImmutableVersionError(Exception):
    """Raised when something tries to modify a published template version"""
    pass


class TemplateVersion(Base):
    """Published, immutable snapshot of a template schema. Versions start at 1."""

    __tablename__ = 'template_versions'
    __table_args__ = (
        UniqueConstraint('template_id', 'version', name='uq_template_version'),
        CheckConstraint('version >= 1', name='ck_template_version_positive'),
    )

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey('templates.id'), nullable=False, index=True)
    version = Column(Integer, nullable=False)
    schema_json = Column(JSON, nullable=False)
    checksum = Column(String(64), nullable=False)
    published_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    template = relationship("Template", back_populates="versions")


class TemplateDraft(Base):
    """The single mutable draft of a template, upserted on every save."""

    __tablename__ = 'template_drafts'

    id = Column(Integer, primary_key=True)
    template_id = Column(Integer, ForeignKey('templates.id'), nullable=False, unique=True)
    schema_json = Column(JSON, nullable=False)
    checksum = Column(String(64), nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    template = relationship("Template", back_populates="draft")


@event.listens_for(TemplateVersion, "before_update")
def _reject_version_update(mapper, connection, target):
    raise ImmutableVersionError(
        f"Template version {target.template_id}/{target.version} is immutable"
    )
